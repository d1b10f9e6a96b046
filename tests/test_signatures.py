"""Tests for the signature catalog."""

import pytest

from switch_engine_search.signatures import (
    DEFAULT_CATALOG,
    DEFAULT_SIGNATURES,
    CatalogError,
    OutcomeClass,
    Signature,
    SignatureCatalog,
)


class TestDefaultCatalog:

    def test_default_catalog_is_unambiguous(self):
        """Building the catalog again re-runs the collision check."""
        catalog = SignatureCatalog(DEFAULT_SIGNATURES)
        assert len(catalog) == len(DEFAULT_SIGNATURES) == 11

    @pytest.mark.parametrize("deltas,expected", [
        ((29, 5, -2), OutcomeClass.BLOCK_MAKER),
        ((-2, 29, 5), OutcomeClass.BLOCK_MAKER),
        ((3, 25, 77), OutcomeClass.GLIDER_MAKER_LEFT),
        ((-46, 3, 25), OutcomeClass.GLIDER_MAKER_LEFT),
        ((106, 6, 1), OutcomeClass.GLIDER_MAKER_RIGHT),
        ((-54, 106, 6), OutcomeClass.GLIDER_MAKER_RIGHT),
    ])
    def test_known_signatures(self, deltas, expected):
        assert DEFAULT_CATALOG.lookup(deltas) is expected

    def test_unknown_and_reversed_triples_miss(self):
        assert DEFAULT_CATALOG.lookup((0, 0, 0)) is None
        assert DEFAULT_CATALOG.lookup((77, 25, 3)) is None

    def test_lookup_accepts_lists(self):
        assert DEFAULT_CATALOG.lookup([5, -2, 29]) is OutcomeClass.BLOCK_MAKER

    def test_classes_in_declaration_order(self):
        assert DEFAULT_CATALOG.classes() == [
            OutcomeClass.BLOCK_MAKER,
            OutcomeClass.GLIDER_MAKER_LEFT,
            OutcomeClass.GLIDER_MAKER_RIGHT,
        ]

    def test_every_class_is_a_full_set_of_rotations(self):
        """Each class lists every phase of one periodic delta cycle."""
        for outcome_class in DEFAULT_CATALOG.classes():
            triples = DEFAULT_CATALOG.signatures_for(outcome_class)
            period = len(triples)
            # Rebuild the cycle oldest-first from the first triple and the
            # newest delta of each following phase.
            first = triples[0]
            cycle = [first[2], first[1], first[0]]
            expected = set()
            while len(cycle) < period + 2:
                newest = next(t for t in triples if (t[2], t[1]) == (cycle[-2], cycle[-1]))[0]
                cycle.append(newest)
            for i in range(period):
                window = [cycle[(i + j) % period] for j in range(3)]
                expected.add((window[2], window[1], window[0]))
            assert expected == set(triples)


class TestCatalogValidation:

    def test_conflicting_classes_rejected(self):
        entries = [
            Signature((1, 2, 3), OutcomeClass.BLOCK_MAKER),
            Signature((1, 2, 3), OutcomeClass.GLIDER_MAKER_LEFT),
        ]
        with pytest.raises(CatalogError):
            SignatureCatalog(entries)

    def test_repeated_identical_entry_allowed(self):
        entries = [
            Signature((1, 2, 3), OutcomeClass.BLOCK_MAKER),
            Signature((1, 2, 3), OutcomeClass.BLOCK_MAKER),
        ]
        catalog = SignatureCatalog(entries)
        assert len(catalog) == 1

    def test_wrong_length_rejected(self):
        with pytest.raises(CatalogError):
            SignatureCatalog([Signature((1, 2), OutcomeClass.BLOCK_MAKER)])

    def test_custom_catalog_is_independent(self):
        catalog = SignatureCatalog([Signature((7, 7, 7), OutcomeClass.GLIDER_MAKER_RIGHT)])
        assert catalog.lookup((7, 7, 7)) is OutcomeClass.GLIDER_MAKER_RIGHT
        assert catalog.lookup((29, 5, -2)) is None

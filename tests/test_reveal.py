"""Tests for progressive reveal."""

from vitrine.engine.reveal import ProgressiveReveal

from conftest import build_listing


def _regular(n, prefix="r"):
    return [build_listing(id=f"{prefix}{i}", title=f"Casa {i}") for i in range(n)]


def test_initial_window():
    reveal = ProgressiveReveal()
    reveal.update(_regular(20))
    assert reveal.visible_count == 12
    assert len(reveal.visible) == 12
    assert reveal.has_more
    assert reveal.remaining == 8


def test_expand_adds_a_chunk_and_stops_when_exhausted():
    reveal = ProgressiveReveal()
    reveal.update(_regular(20))
    assert reveal.expand() == 24
    assert len(reveal.visible) == 20
    assert not reveal.has_more
    assert reveal.expand() == 24
    assert reveal.remaining == 0


def test_expand_on_short_list_is_noop():
    reveal = ProgressiveReveal()
    reveal.update(_regular(5))
    assert reveal.expand() == 12


def test_ensure_visible_then_filter_change_scenario():
    reveal = ProgressiveReveal()
    listings = _regular(20)
    reveal.update(listings)

    assert reveal.ensure_visible("r15") == 24
    assert "r15" in [x.id for x in reveal.visible]

    reveal.update(listings[:5])
    assert reveal.visible_count == 12


def test_ensure_visible_is_idempotent_and_monotonic():
    reveal = ProgressiveReveal()
    reveal.update(_regular(40))
    first = reveal.ensure_visible("r30")
    assert first == 36
    assert reveal.ensure_visible("r30") == first

    # Already visible: never shrinks.
    assert reveal.ensure_visible("r2") == 36
    assert reveal.ensure_visible("r13") == 36


def test_ensure_visible_chunk_boundaries():
    reveal = ProgressiveReveal()
    reveal.update(_regular(40))
    assert reveal.ensure_visible("r11") == 12
    assert reveal.ensure_visible("r12") == 24
    assert reveal.ensure_visible("r23") == 24
    assert reveal.ensure_visible("r24") == 36


def test_ensure_visible_unknown_id_is_noop():
    reveal = ProgressiveReveal()
    reveal.update(_regular(20))
    assert reveal.ensure_visible("missing") == 12


def test_same_subset_does_not_reset():
    reveal = ProgressiveReveal()
    listings = _regular(30)
    reveal.update(listings)
    reveal.expand()
    assert reveal.update(list(listings)) is False
    assert reveal.visible_count == 24


def test_reordered_subset_resets():
    reveal = ProgressiveReveal()
    listings = _regular(30)
    reveal.update(listings)
    reveal.expand()
    assert reveal.update(list(reversed(listings))) is True
    assert reveal.visible_count == 12


def test_observers_notified_on_change_only():
    reveal = ProgressiveReveal()
    seen = []
    unsubscribe = reveal.subscribe(seen.append)
    reveal.update(_regular(30))
    reveal.expand()
    reveal.ensure_visible("r3")
    reveal.ensure_visible("r29")
    assert seen == [24, 36]

    unsubscribe()
    reveal.update(_regular(3, prefix="x"))
    assert seen == [24, 36]


def test_custom_chunk_size():
    reveal = ProgressiveReveal(chunk_size=5)
    reveal.update(_regular(12))
    assert reveal.visible_count == 5
    assert reveal.ensure_visible("r7") == 10

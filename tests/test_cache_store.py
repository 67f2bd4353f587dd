"""Tests for the pit store: generation, LIFO actions, eviction and restore."""

import random
from collections import Counter

import pytest

from geopits.cache_store import CacheStore, PitStatus
from geopits.environment import GridIndex
from geopits.errors import ConfigurationError, InvariantViolation
from geopits.memento import serialize_tokens
from geopits.schemas import Memento, PlayerInventory, Token


def fixed_luck(value: float):
    def _luck(*parts):
        return value
    return _luck


class CountingLuck:
    """Deterministic luck double that records every key it is asked for."""

    def __init__(self, value: float):
        self.value = value
        self.calls = []

    def __call__(self, *parts):
        self.calls.append(parts)
        return self.value


def tok(i, j, serial):
    return Token(owner_i=i, owner_j=j, serial=serial)


def test_first_touch_withdraw_export_and_reimport():
    grid = GridIndex(1e-4)
    cell = grid.cell_for_point(0.00055, 0.00055)
    store = CacheStore(4, luck_fn=fixed_luck(0.8))  # floor(0.8 * 4) == 3
    inventory = PlayerInventory()

    assert (cell.i, cell.j) == (5, 5)
    assert store.contents(cell) == [tok(5, 5, 0), tok(5, 5, 1), tok(5, 5, 2)]

    taken = store.withdraw(cell, inventory)
    assert taken == tok(5, 5, 2)
    assert inventory.tokens == [tok(5, 5, 2)]
    assert store.contents(cell) == [tok(5, 5, 0), tok(5, 5, 1)]

    exported = store.snapshot_all()
    reloaded = CacheStore(4, luck_fn=fixed_luck(0.0))
    assert reloaded.restore_all(exported) == 1
    assert reloaded.contents(cell) == [tok(5, 5, 0), tok(5, 5, 1)]


def test_restored_cell_skips_procedural_generation():
    grid = GridIndex(1.0)
    cell = grid.cell(2, 3)
    saved = [tok(9, 9, 4), tok(2, 3, 0)]
    counting = CountingLuck(0.99)
    store = CacheStore(4, luck_fn=counting)

    store.restore_all([Memento(cell_key="2,3", serialized_tokens=serialize_tokens(saved))])
    assert store.status(cell) is PitStatus.STORED

    pit = store.materialize_if_absent(cell)

    assert pit.tokens == saved
    assert counting.calls == []


def test_procedural_fill_is_deterministic():
    grid = GridIndex(1e-4)
    first = CacheStore(8)
    second = CacheStore(8)

    for cell in grid.neighborhood(grid.cell(100, -200), 3):
        a = first.procedural_fill(cell)
        b = second.procedural_fill(cell)
        assert a.tokens == b.tokens
        assert a.tokens == first.procedural_fill(cell).tokens
        assert [t.serial for t in a.tokens] == list(range(len(a)))
        assert all((t.owner_i, t.owner_j) == (cell.i, cell.j) for t in a.tokens)
        assert 0 <= len(a) < 8


def test_initial_count_stays_below_maximum():
    grid = GridIndex(1.0)

    assert CacheStore(4, luck_fn=fixed_luck(0.0)).initial_count(grid.cell(0, 0)) == 0
    assert CacheStore(4, luck_fn=fixed_luck(0.999999)).initial_count(grid.cell(0, 0)) == 3
    assert CacheStore(1, luck_fn=fixed_luck(0.5)).initial_count(grid.cell(0, 0)) == 0


def test_initial_draw_is_keyed_by_cell_and_salt():
    grid = GridIndex(1.0)
    counting = CountingLuck(0.3)
    store = CacheStore(4, luck_fn=counting)

    store.materialize_if_absent(grid.cell(-2, 7))

    assert counting.calls == [(-2, 7, "initialValue")]


def test_first_touch_writes_memento():
    grid = GridIndex(1.0)
    cell = grid.cell(1, 1)
    store = CacheStore(4, luck_fn=fixed_luck(0.5))

    assert store.status(cell) is PitStatus.UNKNOWN
    store.materialize_if_absent(cell)

    assert store.status(cell) is PitStatus.LOADED
    assert store.memento_for(cell).serialized_tokens == serialize_tokens([tok(1, 1, 0), tok(1, 1, 1)])


def test_withdraw_from_empty_pit_is_a_no_op():
    grid = GridIndex(1.0)
    cell = grid.cell(0, 0)
    store = CacheStore(4, luck_fn=fixed_luck(0.0))
    inventory = PlayerInventory(tokens=[tok(7, 7, 0)])

    assert store.withdraw(cell, inventory) is None
    assert inventory.tokens == [tok(7, 7, 0)]
    assert store.contents(cell) == []


def test_deposit_keeps_identity_and_stacks_on_top():
    grid = GridIndex(1.0)
    cell = grid.cell(4, 4)
    store = CacheStore(4, luck_fn=fixed_luck(0.3))  # one token
    foreign = tok(-1, 8, 3)
    inventory = PlayerInventory(tokens=[foreign])

    assert store.deposit(cell, foreign, inventory) is True

    assert inventory.tokens == []
    assert store.contents(cell) == [tok(4, 4, 0), foreign]
    assert store.withdraw(cell, inventory) == foreign


def test_deposit_into_unvisited_cell_seeds_from_generator_first():
    grid = GridIndex(1.0)
    cell = grid.cell(1, 1)
    store = CacheStore(4, luck_fn=fixed_luck(0.5))
    held = tok(9, 9, 0)
    inventory = PlayerInventory(tokens=[held])

    store.deposit(cell, held, inventory)

    expected = [tok(1, 1, 0), tok(1, 1, 1), held]
    assert store.contents(cell) == expected
    assert store.memento_for(cell).serialized_tokens == serialize_tokens(expected)


def test_deposit_of_unheld_token_raises_in_strict_mode():
    grid = GridIndex(1.0)
    store = CacheStore(4, luck_fn=fixed_luck(0.0))

    with pytest.raises(InvariantViolation):
        store.deposit(grid.cell(0, 0), tok(1, 1, 1), PlayerInventory())


def test_deposit_of_unheld_token_is_ignored_when_lenient(capsys):
    grid = GridIndex(1.0)
    cell = grid.cell(0, 0)
    store = CacheStore(4, luck_fn=fixed_luck(0.0), strict=False)

    assert store.deposit(cell, tok(1, 1, 1), PlayerInventory()) is False
    assert store.contents(cell) == []
    assert "Invariant violation ignored" in capsys.readouterr().out


def test_deposit_from_player_pops_most_recent_token():
    grid = GridIndex(1.0)
    cell = grid.cell(0, 0)
    store = CacheStore(4, luck_fn=fixed_luck(0.0))
    inventory = PlayerInventory(tokens=[tok(1, 1, 0), tok(2, 2, 0)])

    assert store.deposit_from_player(cell, inventory) == tok(2, 2, 0)
    assert inventory.tokens == [tok(1, 1, 0)]
    assert store.contents(cell) == [tok(2, 2, 0)]

    empty = PlayerInventory()
    assert store.deposit_from_player(cell, empty) is None


def test_eviction_keeps_mutation_history():
    grid = GridIndex(1.0)
    cell = grid.cell(3, 3)
    counting = CountingLuck(0.8)
    store = CacheStore(4, luck_fn=counting)
    inventory = PlayerInventory()

    store.withdraw(cell, inventory)
    assert store.evict(cell) is True
    assert store.status(cell) is PitStatus.STORED
    assert store.evict(cell) is False

    assert store.contents(cell) == [tok(3, 3, 0), tok(3, 3, 1)]
    assert len(counting.calls) == 1


def test_retain_only_evicts_cells_out_of_view():
    grid = GridIndex(1.0)
    store = CacheStore(4, luck_fn=fixed_luck(0.5))
    near = grid.neighborhood(grid.cell(0, 0), 1)
    for cell in near:
        store.materialize_if_absent(cell)

    evicted = store.retain_only([grid.cell(0, 0), grid.cell(1, 1)])

    assert evicted == 7
    assert sorted(store.live_keys) == ["0,0", "1,1"]
    assert len(store) == 9


def test_snapshot_all_lists_pits_in_first_touch_order():
    grid = GridIndex(1.0)
    store = CacheStore(4, luck_fn=fixed_luck(0.5))
    order = [grid.cell(2, 0), grid.cell(-1, 5), grid.cell(0, 0)]
    for cell in order:
        store.materialize_if_absent(cell)
    store.withdraw(order[0], PlayerInventory())

    assert [m.cell_key for m in store.snapshot_all()] == ["2,0", "-1,5", "0,0"]


def test_restore_drops_malformed_entries(capsys):
    grid = GridIndex(1.0)
    store = CacheStore(4, luck_fn=fixed_luck(0.5))
    good = Memento(cell_key="0,0", serialized_tokens=serialize_tokens([tok(0, 0, 7)]))
    bad = Memento(cell_key="1,1", serialized_tokens='[{"owner_i": "x"}]')

    assert store.restore_all([bad, good]) == 1

    assert "Malformed memento for cell 1,1" in capsys.readouterr().out
    assert store.status(grid.cell(1, 1)) is PitStatus.UNKNOWN
    assert store.contents(grid.cell(1, 1)) == [tok(1, 1, 0), tok(1, 1, 1)]
    assert store.contents(grid.cell(0, 0)) == [tok(0, 0, 7)]


def test_restore_replaces_a_loaded_pit():
    grid = GridIndex(1.0)
    cell = grid.cell(0, 0)
    store = CacheStore(4, luck_fn=fixed_luck(0.5))
    store.materialize_if_absent(cell)

    store.restore_all([Memento(cell_key="0,0", serialized_tokens="[]")])

    assert store.contents(cell) == []


def test_actions_conserve_tokens():
    grid = GridIndex(1.0)
    store = CacheStore(6)
    inventory = PlayerInventory()
    cells = grid.neighborhood(grid.cell(0, 0), 2)
    for cell in cells:
        store.materialize_if_absent(cell)

    def everything():
        held = Counter(inventory.tokens)
        for cell in cells:
            held.update(store.contents(cell))
        return held

    before = everything()
    assert sum(before.values()) > 0

    rng = random.Random(42)
    for _ in range(300):
        cell = rng.choice(cells)
        if rng.random() < 0.5:
            store.withdraw(cell, inventory)
        else:
            store.deposit_from_player(cell, inventory)
        if rng.random() < 0.2:
            store.retain_only(rng.sample(cells, 5))

    assert everything() == before
    assert max(before.values()) == 1


def test_max_initial_tokens_must_be_positive():
    with pytest.raises(ConfigurationError):
        CacheStore(0)


def test_materialized_pit_is_a_snapshot():
    grid = GridIndex(1e-4)
    cell = grid.cell_for_point(0.00055, 0.00055)
    store = CacheStore(4, luck_fn=fixed_luck(0.8))

    pit = store.materialize_if_absent(cell)
    pit.pop()
    pit.push(tok(9, 9, 9))

    before = store.contents(cell)
    store.evict(cell)
    after = store.contents(cell)

    assert before == [tok(5, 5, 0), tok(5, 5, 1), tok(5, 5, 2)]
    assert after == before
    assert store.materialize_if_absent(cell) is not store.materialize_if_absent(cell)

import pytest

from pktkit.rand import Rand


def test_same_seed_same_stream():
    a = Rand(b"seed").get(32)
    assert a == Rand(b"seed").get(32)
    assert len(a) == 32
    assert a != Rand(b"other").get(32)


def test_set_resets_state():
    r = Rand(b"alpha")
    first = r.get(16)
    r.get(5)
    r.set(b"alpha")
    assert r.get(16) == first


def test_add_stirs_state():
    r1, r2, r3 = Rand(b"k"), Rand(b"k"), Rand(b"k")
    r2.add(b"extra")
    r3.add(b"extra")
    out2 = r2.get(16)
    assert out2 == r3.get(16)
    assert out2 != r1.get(16)


def test_integers_compose_bytes():
    r1, r2 = Rand(b"ints"), Rand(b"ints")
    assert r1.uint8() == r2.get(1)[0]
    assert r1.uint16() == int.from_bytes(r2.get(2), "big")
    assert r1.uint32() == int.from_bytes(r2.get(4), "big")


def test_unseeded_ranges():
    r = Rand()
    assert len(r.get(100)) == 100
    assert r.get(0) == b""
    assert 0 <= r.uint32() < 2**32
    assert 0 <= r.uint16() < 2**16


def test_empty_seed_rejected():
    with pytest.raises(ValueError):
        Rand(b"")
    with pytest.raises(ValueError):
        Rand(b"x").add(b"")


def test_shuffle_is_permutation():
    items = list(range(50))
    Rand(b"shuffle").shuffle(items)
    assert sorted(items) == list(range(50))


def test_shuffle_deterministic():
    a = list(range(20))
    b = list(range(20))
    Rand(b"same").shuffle(a)
    Rand(b"same").shuffle(b)
    assert a == b


def test_shuffle_single_item():
    items = ["only"]
    Rand(b"x").shuffle(items)
    assert items == ["only"]
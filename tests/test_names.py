from gogen import FreshNames


def test_counter_is_shared_across_prefixes() -> None:
    names = FreshNames()
    assert names.next("tmp") == "tmp0"
    assert names.next("v") == "v1"
    assert names.next("tmp") == "tmp2"


def test_independent_allocators_repeat() -> None:
    first = FreshNames()
    second = FreshNames()
    assert [first.next("x") for _ in range(3)] == [second.next("x") for _ in range(3)]


def test_start_value() -> None:
    assert FreshNames(start=7).next("size") == "size7"

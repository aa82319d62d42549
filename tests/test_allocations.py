from utils.allocations import AllocationSet


def test_empty_set_is_invalid():
    empty = AllocationSet()
    assert empty.total() == 0
    assert not empty.is_valid()


def test_toggle_twice_restores_absence():
    start = AllocationSet({"Tests": 40})
    once = start.toggle("Quizzes")
    assert once == {"Tests": 40, "Quizzes": 0}
    assert once.toggle("Quizzes") == start


def test_toggle_removes_weighted_entry():
    assert AllocationSet({"Quizzes": 30}).toggle("Quizzes") == {}


def test_set_value_zero_always_removes():
    assert "Quizzes" not in AllocationSet().set_value("Quizzes", 0)
    assert "Quizzes" not in AllocationSet({"Quizzes": 0}).set_value("Quizzes", "0")
    assert "Quizzes" not in AllocationSet({"Quizzes": 55}).set_value("Quizzes", 0)
    assert "Quizzes" not in AllocationSet({"Quizzes": 55}).set_value("Quizzes", "")


def test_set_value_rejects_bad_input():
    start = AllocationSet({"Quizzes": 30})
    for raw in ("abc", "12.5", -1, 101, "250", True, "3_0", "+30", "\u0663\u0660", " -5", ["30"]):
        assert start.set_value("Quizzes", raw) == start
    assert start.set_value("Quizzes", "100") == {"Quizzes": 100}


def test_operations_do_not_mutate():
    start = AllocationSet({"Quizzes": 30})
    start.set_value("Finals", 70)
    start.toggle("Tests")
    start.remove("Quizzes")
    assert start == {"Quizzes": 30}


def test_remove_is_unconditional():
    assert AllocationSet({"Quizzes": 30, "Tests": 0}).remove("Quizzes").remove("Tests") == {}
    assert AllocationSet().remove("Missing") == {}


def test_validity_boundary():
    assert AllocationSet({"A": 60, "B": 40}).is_valid()
    assert not AllocationSet({"A": 60, "B": 39}).is_valid()
    assert not AllocationSet({"A": 60, "B": 41}).is_valid()


def test_wizard_sequence_reaches_one_hundred():
    s = AllocationSet().toggle("Quizzes")
    assert s == {"Quizzes": 0}
    s = s.set_value("Quizzes", 30)
    assert s == {"Quizzes": 30}
    s = s.toggle("Finals")
    assert s == {"Quizzes": 30, "Finals": 0}
    s = s.set_value("Finals", 70)
    assert s == {"Quizzes": 30, "Finals": 70}
    assert s.total() == 100
    assert s.is_valid()


def test_weighted_drops_unweighted_selections():
    s = AllocationSet({"Quizzes": 100, "Tests": 0})
    assert s.weighted() == {"Quizzes": 100}
    assert s.is_valid()

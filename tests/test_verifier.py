import threading

import pytest

from fakecall.verifier import CallCountError, CallCountVerifier


def test_increment_returns_previous_count():
    verifier = CallCountVerifier(3)
    assert [verifier.increment() for _ in range(3)] == [0, 1, 2]
    assert verifier.calls == 3


def test_verify_passes_when_count_matches():
    verifier = CallCountVerifier(2)
    verifier.increment()
    verifier.increment()
    verifier.verify()
    assert verifier.calls == verifier.expected


def test_verify_fails_on_too_few_calls():
    verifier = CallCountVerifier(2)
    verifier.increment()
    with pytest.raises(CallCountError) as info:
        verifier.verify()
    assert info.value.expected == 2
    assert info.value.actual == 1


def test_verify_fails_on_too_many_calls():
    verifier = CallCountVerifier(1)
    verifier.increment()
    verifier.increment()
    with pytest.raises(CallCountError) as info:
        verifier.verify()
    assert info.value.actual == 2


def test_error_message_names_both_counts():
    verifier = CallCountVerifier(1)
    with pytest.raises(CallCountError) as info:
        verifier.verify()
    assert str(info.value) == (
        "Fake function was expected to be called 1 time(s), "
        "but it is actually called 0 time(s)"
    )


def test_error_is_an_assertion_error():
    verifier = CallCountVerifier(1)
    with pytest.raises(AssertionError) as info:
        verifier.verify()
    assert info.value.expected == 1
    assert info.value.actual == 0
    assert "1 time(s)" in str(info.value)
    assert verifier.calls == 0


def test_unchecked_verifier_only_counts():
    verifier = CallCountVerifier(None)
    for _ in range(5):
        verifier.increment()
    verifier.verify()
    assert verifier.calls == 5
    assert verifier.checked is False


def test_default_is_unchecked():
    verifier = CallCountVerifier()
    assert verifier.expected is None
    assert verifier.checked is False


def test_zero_expected_requires_no_calls():
    verifier = CallCountVerifier(0)
    verifier.verify()
    verifier.increment()
    with pytest.raises(CallCountError):
        verifier.verify()


def test_context_manager_verifies_on_exit():
    with pytest.raises(CallCountError):
        with CallCountVerifier(1) as verifier:
            assert verifier.calls == 0


def test_context_manager_passes_when_satisfied():
    with CallCountVerifier(1) as verifier:
        verifier.increment()
    assert verifier.calls == 1


def test_context_manager_lets_existing_error_through():
    with pytest.raises(KeyError) as info:
        with CallCountVerifier(4) as verifier:
            raise KeyError("boom")
    assert info.value.args == ("boom",)
    assert verifier.calls == 0
    assert verifier.expected == 4


@pytest.mark.parametrize("bad", [-1, -10])
def test_negative_expected_rejected(bad):
    with pytest.raises(ValueError):
        CallCountVerifier(bad)


@pytest.mark.parametrize("bad", ["1", 1.5, True])
def test_non_integer_expected_rejected(bad):
    with pytest.raises(TypeError):
        CallCountVerifier(bad)


def test_increment_is_thread_safe():
    verifier = CallCountVerifier(800)

    def work():
        for _ in range(100):
            verifier.increment()

    threads = [threading.Thread(target=work) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    verifier.verify()
    assert verifier.calls == 800
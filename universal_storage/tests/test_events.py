"""Tests for observing storage calls."""

import pytest

from universal_storage.errors import StructuralError
from universal_storage.events import EventKind, ObservedStorage

from .fakes import FakeRemote


def test_listeners_see_before_and_success(storage_factory, make_file) -> None:
    observed = ObservedStorage(storage_factory(FakeRemote()))
    events = []
    observed.register_listener(events.append)

    outcome = observed.store_file(make_file("index.html", 4), "myfolder")

    assert [(event.kind, event.operation) for event in events] == [
        (EventKind.BEFORE, "store_file"),
        (EventKind.SUCCESS, "store_file"),
    ]
    assert events[-1].outcome is outcome
    assert outcome.remote_path == "/storage/myfolder/index.html"


def test_listeners_see_errors_and_error_is_raised(storage_factory) -> None:
    remote = FakeRemote()
    observed = ObservedStorage(storage_factory(remote))
    events = []
    observed.register_listener(events.append)

    with pytest.raises(StructuralError):
        observed.retrieve_file("folder/")

    assert events[-1].kind == EventKind.ERROR
    assert isinstance(events[-1].error, StructuralError)
    assert remote.calls == []


def test_failing_listener_does_not_break_the_call(storage_factory) -> None:
    remote = FakeRemote()
    observed = ObservedStorage(storage_factory(remote))

    def broken(event) -> None:
        raise ValueError("listener bug")

    observed.register_listener(broken)
    observed.create_folder("myNewFolder")

    assert remote.folders == ["/storage/myNewFolder"]


def test_removed_listener_is_not_called(storage_factory) -> None:
    observed = ObservedStorage(storage_factory(FakeRemote()))
    events = []
    observed.register_listener(events.append)
    observed.remove_listener(events.append)

    observed.remove_folder("myNewFolder")

    assert events == []

from pathlib import Path

import pytest

from rdcgraph.core.system.property import DeviceLink, PropertyBag, PropertyKind, Scope, Visibility


def test__Visibility__scopes() -> None:
    assert Visibility.PRIVATE.scopes == (Scope.OWN,)
    assert Visibility.PUBLIC.scopes == (Scope.OWN, Scope.INTERFACE)
    assert Visibility.INTERFACE.scopes == (Scope.INTERFACE,)


def test__Visibility__of() -> None:
    assert Visibility.of(True, True) == Visibility.PUBLIC
    assert Visibility.of(True, False) == Visibility.PRIVATE
    assert Visibility.of(False, True) == Visibility.INTERFACE
    with pytest.raises(ValueError):
        Visibility.of(False, False)


def test__PropertyKind__accepted_types() -> None:
    assert PropertyKind.INCLUDE_DIRECTORIES.accepted_types == (Path,)
    assert PropertyKind.COMPILE_OPTIONS.accepted_types == (str,)
    assert set(PropertyKind.LINK_OPTIONS.accepted_types) == {str, DeviceLink}


def test__PropertyBag__add_is_ordered_and_idempotent() -> None:
    bag = PropertyBag()
    assert bag.add(PropertyKind.COMPILE_OPTIONS, ["-O2", "-g"], Visibility.PRIVATE)
    assert not bag.add(PropertyKind.COMPILE_OPTIONS, ["-g", "-O2"], Visibility.PRIVATE)
    assert bag.add(PropertyKind.COMPILE_OPTIONS, ["-Wall", "-g"], Visibility.PRIVATE)
    assert bag.get(PropertyKind.COMPILE_OPTIONS) == ["-O2", "-g", "-Wall"]
    assert bag.get(PropertyKind.COMPILE_OPTIONS, Scope.INTERFACE) == []


def test__PropertyBag__add_before_prepends() -> None:
    bag = PropertyBag()
    bag.add(PropertyKind.INCLUDE_DIRECTORIES, ["b"], Visibility.PRIVATE)
    bag.add(PropertyKind.INCLUDE_DIRECTORIES, ["a", "b"], Visibility.PRIVATE, before=True)
    assert bag.get(PropertyKind.INCLUDE_DIRECTORIES) == [Path("a"), Path("b")]


def test__PropertyBag__interface_visibility_does_not_touch_own_scope() -> None:
    bag = PropertyBag()
    bag.add(PropertyKind.COMPILE_DEFINITIONS, ["FOO=1"], Visibility.INTERFACE)
    assert bag.scoped(PropertyKind.COMPILE_DEFINITIONS).own == []
    assert bag.scoped(PropertyKind.COMPILE_DEFINITIONS).interface == ["FOO=1"]


def test__PropertyBag__adapts_str_to_path() -> None:
    bag = PropertyBag()
    bag.add(PropertyKind.SYSTEM_INCLUDE_DIRECTORIES, ["include", Path("other")], Visibility.PUBLIC)
    assert bag.get(PropertyKind.SYSTEM_INCLUDE_DIRECTORIES) == [Path("include"), Path("other")]


def test__PropertyBag__rejects_items_of_the_wrong_type() -> None:
    bag = PropertyBag()
    with pytest.raises(TypeError):
        bag.add(PropertyKind.COMPILE_OPTIONS, [42], Visibility.PRIVATE)
    with pytest.raises(TypeError):
        bag.add(PropertyKind.INCLUDE_DIRECTORIES, [DeviceLink("a")], Visibility.PRIVATE)
    assert list(bag.kinds()) == []


def test__PropertyBag__link_options_accept_device_links() -> None:
    bag = PropertyBag()
    bag.add(PropertyKind.LINK_OPTIONS, ["-Wl,--as-needed", DeviceLink("foo_static")], Visibility.PRIVATE)
    assert bag.get(PropertyKind.LINK_OPTIONS) == ["-Wl,--as-needed", DeviceLink("foo_static")]


def test__PropertyBag__set_replaces_verbatim() -> None:
    bag = PropertyBag()
    bag.add(PropertyKind.LINK_LIBRARIES, ["a", "b"], Visibility.PUBLIC)
    bag.set(PropertyKind.LINK_LIBRARIES, Scope.OWN, ["a", "c", "a"])
    assert bag.get(PropertyKind.LINK_LIBRARIES, Scope.OWN) == ["a", "c", "a"]
    assert bag.get(PropertyKind.LINK_LIBRARIES, Scope.INTERFACE) == ["a", "b"]


def test__PropertyBag__get_returns_a_copy() -> None:
    bag = PropertyBag()
    bag.add(PropertyKind.COMPILE_OPTIONS, ["-O2"], Visibility.PRIVATE)
    bag.get(PropertyKind.COMPILE_OPTIONS).append("-O3")
    assert bag.get(PropertyKind.COMPILE_OPTIONS) == ["-O2"]

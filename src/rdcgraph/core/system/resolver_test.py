from rdcgraph.core.system.context import BuildContext


def _device_libraries(ctx: BuildContext, *names: str) -> None:
    for name in names:
        ctx.facade.add_library(name, sources=[f"{name}.cu"])


def test__DependencyResolver__depends_on(rdc_ctx: BuildContext) -> None:
    _device_libraries(rdc_ctx, "a", "b")
    rdc_ctx.facade.add_alias("Project::a", "a")
    rdc_ctx.facade.add_dependency("b", "Project::a")
    resolver = rdc_ctx.resolver

    assert resolver.depends_on("b", "a")
    assert resolver.depends_on("b", "Project::a")
    assert resolver.depends_on("b_final", "a")
    assert not resolver.depends_on("a", "b")
    assert not resolver.depends_on("a", "a")
    assert not resolver.depends_on("b", "m")
    assert not resolver.depends_on("unknown", "a")


def test__DependencyResolver__interface_libraries_have_no_link_edges(rdc_ctx: BuildContext) -> None:
    _device_libraries(rdc_ctx, "a")
    rdc_ctx.facade.add_library("headers", "INTERFACE")
    rdc_ctx.facade.add_dependency("headers", "a", visibility="INTERFACE")

    assert not rdc_ctx.resolver.depends_on("headers", "a")
    assert rdc_ctx.resolver.gather_device_dependencies("headers") == []


def test__DependencyResolver__gather_device_dependencies_is_preorder(rdc_ctx: BuildContext) -> None:
    _device_libraries(rdc_ctx, "a", "b", "c")
    rdc_ctx.facade.add_library("util", sources=["util.cc"])
    rdc_ctx.facade.add_dependency("b", "a")
    rdc_ctx.facade.add_dependency("c", "util", "b")
    rdc_ctx.facade.add_dependency("util", "a")

    assert rdc_ctx.resolver.gather_device_dependencies("c") == ["a", "b"]
    assert rdc_ctx.resolver.gather_device_dependencies("b") == ["a"]
    assert rdc_ctx.resolver.gather_device_dependencies("a") == []


def test__DependencyResolver__find_final_libraries_keeps_the_most_downstream(rdc_ctx: BuildContext) -> None:
    _device_libraries(rdc_ctx, "a", "b", "c")
    rdc_ctx.facade.add_dependency("c", "a")
    resolver = rdc_ctx.resolver

    assert resolver.find_final_libraries(["a", "b", "c"]) == ["b_final", "c_final"]
    assert resolver.find_final_libraries(["c", "a", "b"]) == ["c_final", "b_final"]
    assert resolver.find_final_libraries(["a", "c", "a"]) == ["c_final"]
    assert resolver.find_final_libraries(["a_final", "a"]) == ["a_final"]


def test__DependencyResolver__find_final_libraries_ignores_non_device_names(rdc_ctx: BuildContext) -> None:
    _device_libraries(rdc_ctx, "a")
    rdc_ctx.facade.add_library("headers", "INTERFACE")
    rdc_ctx.facade.add_library("util", sources=["util.cc"])

    assert rdc_ctx.resolver.find_final_libraries(["headers", "util", "m", "a"]) == ["a_final"]
    assert rdc_ctx.resolver.find_final_libraries([]) == []


def test__DependencyResolver__resolve_final_libraries_is_order_independent(rdc_ctx: BuildContext) -> None:
    _device_libraries(rdc_ctx, "a", "b", "c")
    rdc_ctx.facade.add_dependency("c", "a")
    rdc_ctx.facade.add_library("x", sources=["x.cc"])
    rdc_ctx.facade.add_library("y", sources=["y.cc"])
    rdc_ctx.facade.add_dependency("x", "a", "b", "c")
    rdc_ctx.facade.add_dependency("y", "c", "b", "a")

    assert set(rdc_ctx.resolver.resolve_final_libraries("x")) == {"b_final", "c_final"}
    assert set(rdc_ctx.resolver.resolve_final_libraries("y")) == {"b_final", "c_final"}
    assert rdc_ctx.resolver.resolve_final_libraries("x") == rdc_ctx.resolver.resolve_final_libraries("x")

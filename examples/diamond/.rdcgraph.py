from rdcgraph.build import add_compile_definitions, add_dependency, add_executable, add_library, set_runtime_mode

add_library("geometry", sources=["geometry.cu"])
add_library("physics", sources=["physics.cu"])
add_library("render", sources=["render.cu", "render.cc"])
add_compile_definitions("geometry", "PUBLIC", ["GEOMETRY_DOUBLE_PRECISION"])
add_dependency("physics", "geometry", visibility="PUBLIC")
add_dependency("render", "geometry", visibility="PUBLIC")

for name in ("geometry", "physics", "render"):
    set_runtime_mode(name, "static")

add_executable("simulate", ["main.cc"])
add_dependency("simulate", "physics", "render")

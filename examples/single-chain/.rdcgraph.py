from rdcgraph.build import add_alias, add_dependency, add_executable, add_include_dirs, add_library, install

add_library("kernels", sources=["kernels.cu"])
add_library("solver", "SHARED", ["solver.cu", "solver.cc"])
add_alias("Solver::solver", "solver")
add_include_dirs("solver", "PUBLIC", ["include"])
add_dependency("solver", "kernels")

add_executable("solve", ["main.cc"])
add_dependency("solve", "Solver::solver")

install("Solver::solver", destination="lib", export="SolverTargets")

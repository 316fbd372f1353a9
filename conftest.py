pytest_plugins = ["rdcgraph.core.testing"]

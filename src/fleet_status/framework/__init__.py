"""
Fleet status framework: targeting, concurrent dispatch, configuration,
cluster clients and logging. Components are available as submodules.
"""

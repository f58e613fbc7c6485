"""Report flows.

Each flow gathers catalog data, fans queries out through the bounded
executor where needed, reduces the results and returns ordered records for
rendering.
"""

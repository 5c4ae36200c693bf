"""
Analysis Package.

Bookkeeping used by passes while inspecting a function body.

Modules:
    - ``symbol_table``: Variable records with shadowing and usage flags.
"""

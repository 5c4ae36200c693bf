"""
Core Package.

Contains the engine:
- Node arena, tree builder and JSON document format
- Traversal dispatcher and scripting bridge
- Pass registry, script guard and pass driver
- Trace logging and run reports
"""

"""
Built-in Passes Package.

Every public module here is imported by ``load_passes``; functions decorated
with ``@register_pass`` become available by name. Adding a module is enough to
ship a new pass.
"""

"""
Core package providing the class registry and object model.

Architecture:
- errors, types, settings: shared vocabulary with no classkit dependencies
- definition: validated declarations, one capability record per class kind
- class_type, instance: resolved classes and the runtime base class
- manager, builder, hooks, graph: registry, alteration and notifications

Design Patterns:
- Registry for class lookup by name
- Builder for fluent declaration and alteration
- Observer for resolution and instantiation notifications
- Prototype for by-value trait composition

Cross-cutting:
- Errors propagate to the caller, failed resolutions are rolled back
- Diagnostics through the standard logging module, one logger per module
"""

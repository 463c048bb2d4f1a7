"""Declarative object-tree builder for multi-format layouts.

The `dynui` package turns layout sources into trees of objects.

Key features:
- a line-oriented text DSL plus JSON, XML and YAML layouts, all parsed
  into the same node descriptors;
- conversion of textual property values into typed values;
- pluggable property validation that blocks errors and reports warnings;
- a sync and a cancellable async builder with a detailed build report;
- plugins whose registrations are tracked and reverted exactly on unload.
"""

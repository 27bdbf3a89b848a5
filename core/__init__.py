# Path: core/__init__.py
# Purpose: Package initializer for core application layer.
# Layer: core.
# Details: Aggregates subpackages for domain models, rule storage, matching, and the bulk apply pipeline.

"""
Core monitoring engine for CYCLEMON.

Contains signal snapshots, predicates, property definitions, the
per-property obligation tracker, the coverage registry, the report
structures, and the per-cycle monitor driver.
"""

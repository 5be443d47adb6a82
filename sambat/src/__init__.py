"""
Battery health engine package for the SAM Battery telemetry pipeline.

Samples live battery telemetry from the public broadcast/battery-info path,
optionally enriches it with a privileged diagnostic dump, and builds one
internally consistent battery health snapshot (state-of-health, usable
capacity, signed current and power).

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

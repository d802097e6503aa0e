"""
AION - Workflow execution engine for low-code automations.

Runs directed graphs of integration-backed nodes against a trigger payload,
resolving {{node.field}} templates between steps.
"""

__version__ = "1.0.0"

"""Client Workflow Automation Engine.

Drives tax-practice clients through their lifecycle stages:
- stage-triggered task generation, at most once per client and stage
- follow-up cascades when tasks complete
- client progress derived from the full task set
"""

__version__ = "0.1.0"

from client_workflow_automation.engine.config import EngineSettings
from client_workflow_automation.engine.workflow.service import WorkflowEngine

__all__ = ["__version__", "EngineSettings", "WorkflowEngine"]

"""Client workflow automation.

This package holds the engine's moving parts:
- a read-only template registry (stage templates and follow-up templates)
- the task instantiator binding templates to clients
- the stage transition controller (idempotent per client and stage)
- the completion cascade processor (one level of follow-ups per completion)
- the progress aggregator

:class:`~client_workflow_automation.engine.workflow.service.WorkflowEngine`
wires them together.
"""

from client_workflow_automation.engine.workflow.service import WorkflowEngine
from client_workflow_automation.engine.workflow.templates import TaskTemplate, TemplateRegistry

__all__ = ["TaskTemplate", "TemplateRegistry", "WorkflowEngine"]

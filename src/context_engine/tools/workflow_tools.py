"""
Workflow tools: model-backed planning and sequential execution of tool steps.
"""

from typing import Any, Dict, List

from .base import BaseTool
from .exceptions import ToolExecutionError
from .types import Tool, ToolContext, ParameterSpec, ParamType, ToolCategory
from ..utils.error_handling import ContextEngineError


MAX_WORKFLOW_DEPTH = 3

WORKFLOW_PROMPT = """Create a detailed workflow for: {description}

List the steps in order. For each step give a short title, what it does and
which of these tools it could use: {tools}."""


class WorkflowCreatorTool(BaseTool):
    """Ask the analysis model for a workflow plan."""

    def get_schema(self) -> Tool:
        return Tool(
            name="workflow_creator",
            description="Create automated workflows",
            category=ToolCategory.WORKFLOW.value,
            input_schema=[
                ParameterSpec("description", ParamType.STRING, True, "What the workflow should achieve"),
            ],
        )

    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
        description = self._require_string(parameters, "description")
        tools = ", ".join(context.registry.list_names()) if context.registry else "none"

        plan = self._generate(
            context,
            WORKFLOW_PROMPT.format(description=description, tools=tools),
            model=context.analysis_model,
        )
        return {"description": description, "workflow": plan}


class WorkflowExecutorTool(BaseTool):
    """Run ``steps`` one after another through the registry."""

    def get_schema(self) -> Tool:
        return Tool(
            name="workflow_executor",
            description="Execute defined workflows",
            category=ToolCategory.WORKFLOW.value,
            input_schema=[
                ParameterSpec("steps", ParamType.ARRAY, True,
                              "Ordered list of {\"tool\": name, \"parameters\": {...}}"),
            ],
        )

    def run(self, parameters: Dict[str, Any], context: ToolContext) -> Dict[str, Any]:
        name = self.get_name()
        steps = parameters["steps"]

        if context.registry is None:
            raise ToolExecutionError("Workflow execution needs a tool registry", name)
        if context.call_depth >= MAX_WORKFLOW_DEPTH:
            raise ToolExecutionError(
                f"Workflows may nest at most {MAX_WORKFLOW_DEPTH} levels", name,
                context={"call_depth": context.call_depth}
            )
        if not steps:
            raise ToolExecutionError("Workflow has no steps", name)

        results: List[Dict[str, Any]] = []
        for index, step in enumerate(steps):
            if not isinstance(step, dict) or not isinstance(step.get("tool"), str):
                raise ToolExecutionError(
                    f"Step {index} must be an object with a 'tool' name", name,
                    context={"failed_step": index, "steps": results}
                )

            tool_name = step["tool"]
            try:
                result = context.registry.execute(tool_name, step.get("parameters") or {}, context.child())
            except ContextEngineError as e:
                results.append({"step": index, "tool": tool_name, "success": False, "error": e.to_dict()})
                self.logger.warning(f"Workflow stopped at step {index} ({tool_name}): {e.message}")
                raise ToolExecutionError(
                    f"Workflow failed at step {index} ({tool_name}): {e.message}", name,
                    context={"failed_step": index, "steps": results}
                ) from e

            results.append({"step": index, "tool": tool_name, "success": True, "output": result.output})

        return {"completed": len(results), "total": len(steps), "steps": results}

"""Base agent interface.

Every agent wraps a compiled LangGraph workflow: ``run`` validates the
input, builds the initial state and invokes the graph.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from docnex.core.exceptions import AgentExecutionError


InputT = TypeVar("InputT", bound=BaseModel)
OutputT = TypeVar("OutputT")


class BaseAgent(ABC, Generic[InputT, OutputT]):
    """Abstract base class for the DOCNEX agents.

    Subclasses build their graph in ``__init__`` and store the compiled
    workflow in ``self._compiled_workflow``.
    """

    def __init__(self, name: str) -> None:
        """Initialize agent.

        Args:
            name: Unique name for this agent instance
        """
        self.name = name
        self._compiled_workflow: Any = None

    @property
    @abstractmethod
    def description(self) -> str:
        """Return a one-line description of what the agent does."""
        ...

    @abstractmethod
    async def run(self, input_data: InputT) -> OutputT:
        """Execute the agent's workflow.

        Raises:
            ValueError: If the input is invalid
            AgentExecutionError: If the workflow itself fails
        """
        ...

    @abstractmethod
    async def validate_input(self, input_data: InputT) -> bool:
        """Return True if ``input_data`` can be processed."""
        ...

    async def _invoke(self, state: BaseModel) -> dict[str, Any]:
        """Run the compiled workflow and return the final state as a dict.

        Raises:
            AgentExecutionError: If the graph raises
        """
        try:
            # LangGraph's Pregel.ainvoke typing is overly restrictive
            state_dict: dict[str, Any] = state.model_dump()
            final_state = await self._compiled_workflow.ainvoke(state_dict)  # type: ignore[arg-type]
        except Exception as e:
            raise AgentExecutionError(
                message=f"Workflow execution failed: {e}",
                step="workflow_execution",
                cause=e,
                agent_name=self.name,
            ) from e

        if isinstance(final_state, dict):
            return final_state
        return dict(getattr(final_state, "__dict__", {}))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"

"""适配器模块 / Adapter modules"""

from prompt_evo.adapters.base import AgentAdapter
from prompt_evo.adapters.callable import CallableAdapter
from prompt_evo.adapters.simulated import SimulatedAgentAdapter

__all__ = ["AgentAdapter", "CallableAdapter", "SimulatedAgentAdapter"]

"""Replacement sequencers for masters and agents."""

from cluster_rotator.replacement.agents import AgentReplacementSequencer
from cluster_rotator.replacement.base import Sequencer
from cluster_rotator.replacement.masters import MasterReplacementSequencer

__all__ = ["AgentReplacementSequencer", "MasterReplacementSequencer", "Sequencer"]

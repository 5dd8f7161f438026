"""External processing collaborators and their loading infrastructure."""

from .base import Collaborator
from .loader import CollaboratorRegistry, load_sources
from .shell import ShellScriptCollaborator

__all__ = ["Collaborator", "CollaboratorRegistry", "ShellScriptCollaborator", "load_sources"]

from santa.services.allocation import Allocation, ArchiveEnvelope
from santa.services.allocator import Allocator
from santa.services.rules import RuleSet

__all__ = ["Allocation", "ArchiveEnvelope", "Allocator", "RuleSet"]

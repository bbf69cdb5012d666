"""
Core interfaces for dependency injection
"""
from abc import ABC, abstractmethod
from typing import Optional


class PromptProvider(ABC):
    """User prompt interface"""
    
    @abstractmethod
    def prompt(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        """Prompt user for input"""
        pass
    
    @abstractmethod
    def confirm(self, message: str, default: bool = False) -> bool:
        """Prompt user for confirmation"""
        pass
    
    @abstractmethod
    def confirm_host_key(
        self,
        host: str,
        key_type: str,
        fingerprint: str,
        is_key_changed: bool,
    ) -> bool:
        """Ask whether to trust an SSH host key"""
        pass
    
    @abstractmethod
    def info(self, message: str) -> None:
        """Display info message"""
        pass
    
    @abstractmethod
    def success(self, message: str) -> None:
        """Display success message"""
        pass
    
    @abstractmethod
    def warning(self, message: str) -> None:
        """Display warning message"""
        pass
    
    @abstractmethod
    def error(self, message: str) -> None:
        """Display error message"""
        pass

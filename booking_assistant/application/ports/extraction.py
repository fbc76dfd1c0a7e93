from abc import ABC, abstractmethod
from typing import Any


class ExtractionPort(ABC):
    @abstractmethod
    def extract(self, system_prompt: str, message: str) -> dict[str, Any]:
        """
        Extract appointment fields from a single user message.

        Returns the decoded JSON object produced by the language service.
        Raises:
            LLMUpstreamError: provider unreachable or timed out
            LLMContractError: output was not a JSON object
        """
        raise NotImplementedError

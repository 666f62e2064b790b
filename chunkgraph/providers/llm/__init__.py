from .openai_llm_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]

"""thinkstream provider layer.

Live completions are streamed through LiteLLM; every other caller supplies
its own raw chunk source to the ResponseEventPipeline.
"""

from thinkstream.providers.litellm_provider import LiteLLMStreamer

__all__ = ["LiteLLMStreamer"]

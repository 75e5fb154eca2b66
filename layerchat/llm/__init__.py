from layerchat.llm.backends import BackendRegistry, GenerationBackend, OpenAICompatibleBackend, build_backend_registry

__all__ = ["BackendRegistry", "GenerationBackend", "OpenAICompatibleBackend", "build_backend_registry"]

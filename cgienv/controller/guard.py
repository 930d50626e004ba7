import threading

from .errors import MultipleLoadError


class LoadGuard:
    """Trava de uso único: o ambiente e o stdin só podem ser consumidos uma vez por processo."""

    _instance = None
    _instance_lock = threading.Lock()

    def __new__(cls):
        with cls._instance_lock:
            if cls._instance is None:
                instance = super(LoadGuard, cls).__new__(cls)
                instance._lock = threading.Lock()
                instance._loaded = False
                cls._instance = instance
        return cls._instance

    @classmethod
    def isolated(cls) -> "LoadGuard":
        """Cria uma trava independente do singleton do processo."""
        instance = super(LoadGuard, cls).__new__(cls)
        instance._lock = threading.Lock()
        instance._loaded = False
        return instance

    @property
    def loaded(self) -> bool:
        return self._loaded

    def acquire(self):
        with self._lock:
            if self._loaded:
                raise MultipleLoadError()
            self._loaded = True

    def reset(self):
        # Só para testes: em produção a trava nunca volta ao estado inicial
        with self._lock:
            self._loaded = False

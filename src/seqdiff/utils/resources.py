"""
Shared resources: the worker pool used for batched alignments and optional dependency management.
"""
from functools import cached_property
from importlib import import_module
from pathlib import Path
from concurrent.futures import ThreadPoolExecutor
import atexit
import os
from typing import Callable


# Classes --------------------------------------------------------------------------------------------------------------
class Resources:
    """
    Manages process-wide resources: a lazily created thread pool and the set of optional packages that
    are importable in this environment.

    Attributes:
        package (str): The package name.
        optional_packages (set[str]): The optional packages that could be imported.

    Examples:
        >>> RESOURCES = Resources('numba')
        >>> 'numba' in RESOURCES.optional_packages
        True
    """
    def __init__(self, *optional_packages: str):
        self.package = Path(__file__).parent.parent.name
        self.optional_packages = set(filter(self.has_module, optional_packages))
        # Register cleanup to run automatically when the program exits
        atexit.register(self.shutdown)

    @cached_property
    def available_cpus(self) -> int:
        """Returns the number of available CPUs."""
        try: return os.process_cpu_count()
        except AttributeError: return os.cpu_count()

    @cached_property
    def pool(self) -> ThreadPoolExecutor:
        """Returns a shared ThreadPoolExecutor sized to the machine."""
        return ThreadPoolExecutor(min(32, (self.available_cpus or 1) + 4))

    def shutdown(self):
        """Shuts down the thread pool if it was ever created."""
        # Check if 'pool' is in __dict__ (meaning it was initialized)
        if 'pool' in self.__dict__: self.pool.shutdown(wait=False, cancel_futures=True)

    @staticmethod
    def has_module(module_name: str) -> bool:
        """Checks if a python package can be imported."""
        try:
            import_module(module_name)
            return True
        except ImportError: return False

    # __enter__ and __exit__ are still useful for scoped usage (e.g. testing)
    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb): self.shutdown()


# Decorators -----------------------------------------------------------------------------------------------------------
def jit(signature_or_function=None, **options) -> Callable:
    """
    Conditional Numba JIT decorator.

    If 'numba' is installed (checked via RESOURCES), this applies `numba.jit`
    with the provided arguments. Otherwise, it returns the original function unmodified,
    ignoring any compilation options.

    Examples:
        >>> @jit  # Bare usage
        ... def func(): ...

        >>> @jit(nopython=True, cache=True)  # Configured usage
        ... def func(): ...
    """
    # 1. Fallback: Numba not installed
    if 'numba' not in RESOURCES.optional_packages:
        if callable(signature_or_function): return signature_or_function  # Handle bare @jit
        def passthrough(func: Callable) -> Callable: return func  # Handle @jit(...)
        return passthrough
    # 2. Apply Numba
    from numba import jit as real_jit
    if callable(signature_or_function): return real_jit(signature_or_function)  # Handle bare @jit
    return real_jit(signature_or_function, **options)  # Handle @jit(...)


# Constants ------------------------------------------------------------------------------------------------------------
RESOURCES = Resources('numba')

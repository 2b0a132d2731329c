"""
Function dispatch for the tag language.

A tag call <TAG name params /> is resolved by looking ``name`` up in a
FunctionRegistry and running the function with the resolved string
parameters and the processing context:

    <TAG get_param price 0 />
    <TAG set_param total 42 />
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional

from taglang.config import Config
from taglang.context.processing import ProcessingContext
from taglang.errors import FunctionError, TagLanguageError, UnknownFunctionError

logger = logging.getLogger(__name__)


class TagFunction(ABC):
    """Base class for tag functions."""

    name: str = ""
    min_args: int = 0
    max_args: Optional[int] = None  # None means unlimited
    description: str = ""

    @abstractmethod
    def execute(self, params: List[str], context: ProcessingContext) -> str:
        """Execute the function with the resolved parameters."""
        pass

    def validate_args(self, params: List[str], context: ProcessingContext):
        """Validate argument count."""
        if len(params) < self.min_args:
            raise self.fail(
                context,
                f"{self.name}: expected at least {self.min_args} parameters, got {len(params)}",
                params,
            )
        if self.max_args is not None and len(params) > self.max_args:
            raise self.fail(
                context,
                f"{self.name}: expected at most {self.max_args} parameters, got {len(params)}",
                params,
            )

    def fail(self, context: ProcessingContext, message: str, params: List[str]) -> FunctionError:
        """
        Report ``message`` to the error log and build the error to raise.

        Usage:
            raise self.fail(context, "get_param: parameter name is required", params)
        """
        context.report_error(message, {'function': self.name, 'params': params})
        error = FunctionError(self.name, message, params)
        error.reported = True
        return error


class CallableFunction(TagFunction):
    """Adapts a plain ``fn(params, context) -> str`` to TagFunction."""

    def __init__(self, name: str, handler: Callable[[List[str], ProcessingContext], str], description: str = ""):
        self.name = name
        self.handler = handler
        self.description = description or (handler.__doc__ or "").strip()

    def execute(self, params: List[str], context: ProcessingContext) -> str:
        return self.handler(params, context)


class FunctionRegistry:
    """
    Registry of available functions.

    Names are case sensitive. Register everything at start-up and call
    ``freeze()``; a frozen registry rejects further registrations and can
    be shared by concurrent resolutions.
    """

    def __init__(self, placeholder: Optional[str] = None):
        self._functions: Dict[str, TagFunction] = {}
        self._frozen = False
        self.placeholder = Config.DRY_RUN_PLACEHOLDER if placeholder is None else placeholder

    def register(self, func: TagFunction) -> TagFunction:
        """Register a function."""
        if self._frozen:
            raise RuntimeError(f"Cannot register '{func.name}': registry is frozen")
        if not func.name:
            raise ValueError("Tag functions need a name")
        self._functions[func.name] = func
        return func

    def register_handler(self, name: str, handler: Callable, description: str = "") -> TagFunction:
        """Register a plain callable taking (params, context)."""
        return self.register(CallableFunction(name, handler, description))

    def get(self, name: str) -> Optional[TagFunction]:
        """Get a function by name."""
        return self._functions.get(name)

    def has(self, name: str) -> bool:
        """Check if a function exists."""
        return name in self._functions

    def names(self) -> List[str]:
        return sorted(self._functions)

    def freeze(self) -> 'FunctionRegistry':
        self._frozen = True
        return self

    @property
    def frozen(self) -> bool:
        return self._frozen

    def copy(self) -> 'FunctionRegistry':
        """Unfrozen registry with the same functions, for extension."""
        registry = FunctionRegistry(self.placeholder)
        registry._functions = dict(self._functions)
        return registry

    def dispatch(self, name: str, params: List[str], context: ProcessingContext) -> str:
        """
        Run function ``name`` with ``params``.

        In dry-run mode the function is looked up but not run, and the
        placeholder is returned instead.

        Raises:
            UnknownFunctionError: If ``name`` is not registered
            FunctionError: If the function fails
        """
        func = self.get(name)
        if func is None:
            logger.warning(f"Unknown tag function: {name}")
            raise UnknownFunctionError(name)

        if context.dry_run:
            logger.debug(f"Dry run: skipping {name}({params})")
            return self.placeholder

        logger.debug(f"Calling {name}({params})")
        context.add_message('debug', f"call {name} {params}")
        func.validate_args(params, context)

        try:
            result = func.execute(list(params), context)
        except TagLanguageError:
            raise
        except Exception as e:
            logger.error(f"Error in function {name}: {e}", exc_info=True)
            raise FunctionError(name, f"Error in function {name}: {e}", params, cause=e) from e

        return '' if result is None else str(result)


# ============================================================================
# Context Functions
# ============================================================================

class GetParamFunction(TagFunction):
    """
    Read a value from the processing context.

    Usage:
        <TAG get_param price />           # value of price, or ""
        <TAG get_param price 0 />         # value of price, or 0
        <TAG get_param price +> n/a </TAG get_param>
    """
    name = "get_param"
    description = "Value of a context parameter, or a default"

    def execute(self, params: List[str], context: ProcessingContext) -> str:
        if not params or not params[0]:
            raise self.fail(context, "get_param: parameter name is required", params)

        key = params[0]
        default = params[1] if len(params) > 1 else ""
        value = context.get(key)
        if value is None:
            logger.debug(f"get_param: '{key}' not set, using default {default!r}")
            return default
        return value


class SetParamFunction(TagFunction):
    """
    Store a value in the processing context. Outputs nothing.

    Usage:
        <TAG set_param total 42 />
        <TAG set_param greeting +> Hello there </TAG set_param>   # "Hello there"
    """
    name = "set_param"
    description = "Store a context parameter"

    def execute(self, params: List[str], context: ProcessingContext) -> str:
        if not params or not params[0]:
            raise self.fail(context, "set_param: parameter name is required", params)

        key = params[0]
        context.set(key, ' '.join(params[1:]))
        return ""


# ============================================================================
# Default Registry
# ============================================================================

def create_default_function_registry(placeholder: Optional[str] = None) -> FunctionRegistry:
    """Create a registry with the built-in functions."""
    registry = FunctionRegistry(placeholder)
    registry.register(GetParamFunction())
    registry.register(SetParamFunction())
    return registry


# Default instance
default_function_registry = create_default_function_registry().freeze()

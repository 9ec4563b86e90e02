"""
CLI command handlers for the Context Engine.

Each handler calls one ``MCPService`` operation and prints its JSON result.
The in-memory stores live only as long as the process, so the CLI is mostly
useful for single-shot commands, tool execution and health checks.
"""

import json
import sys
from typing import Any, Callable, Dict, List

from ..config import load_config, ConfigurationError
from ..core.commands.processor import coerce_value
from ..core.service import MCPService
from ..utils import setup_logging, get_logger, log_config_info, ValidationError


def parse_params(pairs: List[str]) -> Dict[str, Any]:
    """Turn ``key=value`` arguments into a parameter mapping."""
    params = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValidationError(f"Invalid parameter '{pair}', expected KEY=VALUE")
        params[key.strip()] = coerce_value(value)
    return params


def _print_json(result: Dict[str, Any]) -> int:
    print(json.dumps(result, indent=2, default=str))
    return 0 if result.get("success") else 1


def _handle_process(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.process_command(args.text, tenant, timeout=args.timeout)


def _handle_store(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.store_context(tenant, args.key, coerce_value(args.value))


def _handle_retrieve(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.retrieve_context(tenant, args.key)


def _handle_clear(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.clear_context(tenant)


def _handle_tools(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.list_tools(args.category)


def _handle_execute(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.execute_tool(args.tool, parse_params(args.param), tenant)


def _handle_index(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.index_document(tenant, args.content, type=args.type, document_id=args.document_id)


def _handle_search(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.find_similar(args.query, type=args.type, tenant=tenant, limit=args.limit)


def _handle_resources(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.list_resources()


def _handle_health(service: MCPService, args, tenant: str) -> Dict[str, Any]:
    return service.health()


HANDLERS: Dict[str, Callable[[MCPService, Any, str], Dict[str, Any]]] = {
    "process": _handle_process,
    "store": _handle_store,
    "retrieve": _handle_retrieve,
    "clear": _handle_clear,
    "tools": _handle_tools,
    "execute": _handle_execute,
    "index": _handle_index,
    "search": _handle_search,
    "resources": _handle_resources,
    "health": _handle_health,
}


def handle_cli_command(args, service_factory: Callable[..., MCPService] = MCPService) -> int:
    """
    Handle CLI commands based on parsed arguments.

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    try:
        config = load_config(args.config)
        setup_logging(config, verbose=args.verbose)
        log_config_info(config)
        logger = get_logger(__name__)

        tenant = args.tenant or config.context.default_tenant
        logger.debug(f"Running '{args.command}' for tenant {tenant}")

        service = service_factory(config)
        try:
            return _print_json(HANDLERS[args.command](service, args, tenant))
        finally:
            service.shutdown()

    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        return _print_json({"success": False, "error": e.to_dict()})
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        return 1

"""
Tags Controller

Exposes tag resolution, validation and condition evaluation over HTTP.
"""

from flask import Blueprint, current_app, request, jsonify
import logging

from taglang import TagProcessor
from taglang.context.processing import ProcessingContext
from taglang.errors import TagLanguageError

logger = logging.getLogger(__name__)

tags_bp = Blueprint('tags', __name__, url_prefix='/api/v1/tags')


def _processor() -> TagProcessor:
    return current_app.extensions['taglang']


def _read_params(data):
    params = data.get('params') or {}
    if not isinstance(params, dict):
        return None
    return params


@tags_bp.route('/resolve', methods=['POST'])
def resolve_text():
    """
    Resolve all tags in a text.

    POST /api/v1/tags/resolve

    Request Body:
    {
        "text": "Price: <TAG get_param price />",
        "params": {"price": "1234"},      # Optional: context seed
        "dry_run": false                  # Optional
    }

    Response:
    {
        "output": "Price: 1234",
        "errors": [],
        "params": {"price": "1234"}
    }
    """
    data = request.get_json(silent=True) or {}
    text = data.get('text')

    if text is None or not isinstance(text, str):
        return jsonify({'error': 'text is required'}), 400

    params = _read_params(data)
    if params is None:
        return jsonify({'error': 'params must be an object'}), 400

    context = ProcessingContext(params)
    try:
        result = _processor().resolve(text, context, dry_run=bool(data.get('dry_run', False)))
    except TagLanguageError as e:
        logger.info(f"Tag resolution failed: {e.message}")
        return jsonify({
            'error': e.message,
            'errors': context.errors()
        }), 422

    return jsonify(result.to_dict()), 200


@tags_bp.route('/validate', methods=['POST'])
def validate_text():
    """
    Validate tag syntax with a dry run.

    POST /api/v1/tags/validate
    {"text": "..."}  ->  {"valid": true, "errors": []}
    """
    data = request.get_json(silent=True) or {}
    text = data.get('text')

    if text is None or not isinstance(text, str):
        return jsonify({'error': 'text is required'}), 400

    return jsonify(_processor().validate_syntax(text)), 200


@tags_bp.route('/condition', methods=['POST'])
def evaluate_condition():
    """
    Evaluate a condition.

    POST /api/v1/tags/condition
    {"condition": "<TAG get_param qty /> > 5", "params": {"qty": "7"}}
    ->  {"result": true, "errors": []}
    """
    data = request.get_json(silent=True) or {}
    condition = data.get('condition')

    if condition is None or not isinstance(condition, str):
        return jsonify({'error': 'condition is required'}), 400

    params = _read_params(data)
    if params is None:
        return jsonify({'error': 'params must be an object'}), 400

    context = ProcessingContext(params)
    result = _processor().evaluate_condition(condition, context, dry_run=bool(data.get('dry_run', False)))

    return jsonify({
        'result': result,
        'errors': context.errors()
    }), 200


@tags_bp.route('/functions', methods=['GET'])
def list_functions():
    """List registered tag functions."""
    registry = _processor().registry
    return jsonify({
        'functions': [
            {'name': name, 'description': registry.get(name).description}
            for name in registry.names()
        ]
    }), 200

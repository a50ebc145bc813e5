#!/usr/bin/env python3
"""
Sales Profit Analyzer - Web Interface

A Flask-based JSON API for parsing restaurant sales reports, costing them
against the menu inventory, and keeping a history of saved reports.
"""
import atexit
import logging
import os
import shutil
import tempfile
import uuid
from datetime import datetime
from threading import Lock, Thread
from time import sleep
from typing import Dict, Tuple

from flask import Flask, jsonify, request, send_file

from analytics.sales_analytics import (
    calculate_profits,
    category_analytics,
    daily_trends,
    dashboard_stats,
    top_items,
)
from config import APP_NAME, APP_VERSION, get_config
from output.excel_generator import generate_sales_report_excel
from parsers.base_parser import ParseResult
from parsers.csv_parser import parser_for_file
from parsers.errors import RecordNotFoundError, SalesReportError
from parsers.xlsx_parser import validate_upload
from storage.inventory_store import InventoryRepository, calc_cost
from storage.sales_store import SalesRecordStore, result_from_dict


# =============================================================================
# Application Configuration
# =============================================================================

app = Flask(__name__)

# Configure logging for production
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

config = get_config()

# File storage configuration
UPLOAD_FOLDER = tempfile.mkdtemp(prefix='sales_upload_')
OUTPUT_FOLDER = tempfile.mkdtemp(prefix='sales_output_')
MAX_CONTENT_LENGTH = config.max_upload_bytes

app.config['MAX_CONTENT_LENGTH'] = MAX_CONTENT_LENGTH

# In-memory stores shared by all requests
inventory = InventoryRepository.from_file(config.get('inventory_file'))
sales_store = SalesRecordStore()

# Track output files for cleanup (guarded by _output_files_lock)
output_files: Dict[str, datetime] = {}
_output_files_lock = Lock()

# HTTP status per error kind; anything unlisted is a server error
STATUS_BY_KIND = {
    'MalformedInput': 400,
    'NoItemsFound': 400,
    'UnreadableFile': 400,
    'NotFound': 404,
    'Conflict': 409,
}


# =============================================================================
# Cleanup Functions
# =============================================================================

def cleanup_old_files():
    """Background task to clean up old report files (older than 1 hour)."""
    while True:
        try:
            sleep(300)  # Run every 5 minutes
            now = datetime.now()
            files_to_remove = []

            with _output_files_lock:
                for filename, created_at in list(output_files.items()):
                    age_minutes = (now - created_at).total_seconds() / 60
                    if age_minutes > 60:
                        files_to_remove.append(filename)

            for filename in files_to_remove:
                filepath = os.path.join(OUTPUT_FOLDER, filename)
                try:
                    if os.path.exists(filepath):
                        os.unlink(filepath)
                        logger.info(f"Cleaned up old file: {filename}")
                except OSError as e:
                    logger.error(f"Error cleaning up {filename}: {e}")
                with _output_files_lock:
                    output_files.pop(filename, None)

        except Exception as e:
            logger.error(f"Error in cleanup task: {e}")


def cleanup_on_exit():
    """Clean up temporary directories on application exit."""
    shutil.rmtree(UPLOAD_FOLDER, ignore_errors=True)
    shutil.rmtree(OUTPUT_FOLDER, ignore_errors=True)
    logger.info("Cleaned up temporary directories")


atexit.register(cleanup_on_exit)

# Start background cleanup thread (not under the debug reloader)
if not os.environ.get('FLASK_DEBUG'):
    cleanup_thread = Thread(target=cleanup_old_files, daemon=True)
    cleanup_thread.start()


# =============================================================================
# Helpers
# =============================================================================

def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


def _flag(name: str) -> bool:
    value = request.values.get(name, 'false')
    return str(value).lower() == 'true'


def _current_resolver():
    """Cost resolver over a snapshot of the inventory, for one request."""
    allow_fuzzy = config.allow_fuzzy_match and not _flag('exact_only')
    return inventory.resolver(
        allow_fuzzy=allow_fuzzy,
        default_margin=config.default_assumed_margin,
    )


class _UploadRejected(SalesReportError):
    """Upload failed validation before parsing."""

    kind = "MalformedInput"


def _parse_upload() -> Tuple[ParseResult, str, str]:
    """
    Parse the file in the current request and write its Excel report.

    Returns:
        Tuple of (result, original file name, report file name)

    Raises:
        SalesReportError: the upload is missing, invalid or unparseable
    """
    if 'file' not in request.files:
        raise _UploadRejected('No file uploaded')

    file = request.files['file']
    if not file.filename:
        raise _UploadRejected('No file selected')

    message = validate_upload(file.filename, request.content_length)
    if message:
        raise _UploadRejected(message)

    file_ext = os.path.splitext(file.filename)[1].lower()
    unique_id = str(uuid.uuid4())[:8]
    input_path = os.path.join(UPLOAD_FOLDER, f"input_{unique_id}{file_ext}")

    try:
        file.save(input_path)
        logger.info(f"File uploaded: {file.filename} -> {os.path.basename(input_path)}")

        result = parser_for_file(input_path, _current_resolver()).parse()
    finally:
        try:
            if os.path.exists(input_path):
                os.unlink(input_path)
        except OSError as e:
            logger.error(f"Error cleaning up input file: {e}")

    output_filename = f"profit_{unique_id}.xlsx"
    generate_sales_report_excel(result, os.path.join(OUTPUT_FOLDER, output_filename))
    with _output_files_lock:
        output_files[output_filename] = datetime.now()

    logger.info(f"Processed {len(result.items)} items for {file.filename}")
    return result, file.filename, output_filename


# =============================================================================
# Routes
# =============================================================================

@app.route('/api/parse', methods=['POST'])
def parse_file():
    """Parse an uploaded sales report without saving it."""
    result, file_name, output_file = _parse_upload()
    return jsonify({
        'success': True,
        'file_name': file_name,
        'output_file': output_file,
        'data': result.to_dict(),
    })


@app.route('/api/upload', methods=['POST'])
def upload_file():
    """Parse an uploaded sales report and save it to the history."""
    result, file_name, output_file = _parse_upload()
    record_id = sales_store.save(result, file_name)
    return jsonify({
        'success': True,
        'id': record_id,
        'output_file': output_file,
        'record': sales_store.fetch(record_id).summary_dict(),
        'data': result.to_dict(),
    }), 201


@app.route('/api/sales', methods=['GET'])
def list_sales():
    """List saved reports, newest first, optionally within a date range."""
    records = sales_store.list(
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
    )
    full = _flag('full')
    return jsonify({
        'success': True,
        'count': len(records),
        'records': [r.to_dict() if full else r.summary_dict() for r in records],
    })


@app.route('/api/sales', methods=['POST'])
def save_sales():
    """Save an already parsed report sent as JSON."""
    data = request.get_json(silent=True) or {}
    result = result_from_dict(data)
    record_id = sales_store.save(result, data.get('file_name') or 'Unknown')
    return jsonify({
        'success': True,
        'message': 'Sales record saved',
        'record': sales_store.fetch(record_id).summary_dict(),
    }), 201


@app.route('/api/sales', methods=['DELETE'])
def delete_sales():
    """Delete a saved report given as ?id=."""
    record_id = request.args.get('id', type=int)
    if record_id is None:
        return _error('Missing id parameter', 400)
    if not sales_store.delete(record_id):
        raise RecordNotFoundError('Record not found', {'id': record_id})
    return jsonify({'success': True, 'message': 'Record deleted'})


@app.route('/api/sales/<int:record_id>', methods=['GET'])
def get_sales_record(record_id: int):
    """A saved report with all items and its five most profitable items."""
    record = sales_store.fetch(record_id)
    top_performers = sorted(record.result.items, key=lambda i: i.profit, reverse=True)[:5]
    data = record.to_dict()
    data['top_performers'] = [i.to_dict() for i in top_performers]
    return jsonify({'success': True, 'record': data})


@app.route('/api/sales/<int:record_id>', methods=['DELETE'])
def delete_sales_record(record_id: int):
    """Delete a saved report."""
    if not sales_store.delete(record_id):
        raise RecordNotFoundError('Record not found', {'id': record_id})
    return jsonify({'success': True})


@app.route('/api/inventory', methods=['GET'])
def get_inventory():
    """
    List inventory items.

    Query params:
        stats: 'true' for per-category counts and mean margins
        name: look up a single item by name
        category: only items in this category
    """
    if _flag('stats'):
        return jsonify({'success': True, **inventory.stats()})

    name = request.args.get('name')
    if name:
        entry = inventory.find_by_name(name, allow_fuzzy=config.allow_fuzzy_match)
        if entry is None:
            raise RecordNotFoundError('Item not found', {'name': name})
        return jsonify({'success': True, 'item': entry.to_dict()})

    category = request.args.get('category')
    entries = inventory.by_category(category) if category else inventory.list()
    return jsonify({
        'success': True,
        'count': len(entries),
        'items': [e.to_dict() for e in entries],
    })


@app.route('/api/inventory', methods=['POST'])
def add_inventory():
    """Add an inventory item; cost is derived from price and margin if omitted."""
    data = request.get_json(silent=True) or {}
    if not data.get('name'):
        return _error('Item name is required', 400)

    try:
        selling_price = float(data.get('selling_price') or 0)
        margin_percent = float(data.get('margin_percent') or 0)
        cost_price = data.get('cost_price')
        if cost_price is None:
            if not selling_price:
                return _error('cost_price or selling_price is required', 400)
            cost_price = calc_cost(selling_price, margin_percent)
        entry = inventory.add(
            name=data['name'],
            cost_price=float(cost_price),
            selling_price=selling_price,
            margin_percent=margin_percent,
            category=data.get('category') or 'General',
        )
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)

    logger.info(f"Inventory item added: {entry.name}")
    return jsonify({'success': True, 'item': entry.to_dict()}), 201


@app.route('/api/inventory', methods=['PUT'])
def update_inventory():
    """Update an inventory item; the body carries its id and the new fields."""
    data = request.get_json(silent=True) or {}
    item_id = data.pop('id', None)
    if item_id is None:
        return _error('Item id is required', 400)

    try:
        entry = inventory.update(int(item_id), **data)
    except (TypeError, ValueError) as e:
        return _error(str(e), 400)
    return jsonify({'success': True, 'item': entry.to_dict()})


@app.route('/api/inventory', methods=['DELETE'])
def delete_inventory():
    """Delete an inventory item given as ?id=."""
    item_id = request.args.get('id', type=int)
    if item_id is None:
        return _error('Missing id parameter', 400)
    if not inventory.delete(item_id):
        raise RecordNotFoundError('Item not found', {'id': item_id})
    return jsonify({'success': True, 'message': 'Item deleted'})


@app.route('/api/analytics', methods=['GET'])
def get_analytics():
    """Dashboard totals, category and item rollups, and daily trends."""
    records = sales_store.list(
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
    )
    limit = request.args.get('limit', type=int) or config.get('top_items_limit', 10)
    return jsonify({
        'success': True,
        'stats': dashboard_stats(records),
        'category_analytics': category_analytics(records),
        'top_items': top_items(records, limit=limit),
        'daily_trends': daily_trends(records),
        'recent_records': [r.summary_dict() for r in records[:5]],
    })


@app.route('/api/analytics', methods=['POST'])
def post_analytics():
    """Cost an ad-hoc item list and report margin insights."""
    data = request.get_json(silent=True) or {}
    items = data.get('items')
    if not items or not isinstance(items, list):
        return _error('Invalid items data', 400)

    return jsonify({'success': True, **calculate_profits(items, _current_resolver())})


@app.route('/download/<filename>')
def download_file(filename):
    """Download a generated profit report."""
    # Security: only allow alphanumeric filenames with underscores and dots
    if not filename.replace('_', '').replace('.', '').isalnum():
        return _error('Invalid filename', 400)

    file_path = os.path.realpath(os.path.join(OUTPUT_FOLDER, filename))
    # Ensure the resolved path is actually within OUTPUT_FOLDER
    if not file_path.startswith(os.path.realpath(OUTPUT_FOLDER) + os.sep):
        return _error('Invalid filename', 400)

    if not os.path.exists(file_path):
        return _error('File not found or expired. Please process the file again.', 404)

    logger.info(f"File downloaded: {filename}")

    return send_file(
        file_path,
        as_attachment=True,
        download_name=f"sales_profit_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    )


@app.route('/health')
def health_check():
    """Health check endpoint."""
    return jsonify({
        'status': 'healthy',
        'app': APP_NAME,
        'version': APP_VERSION,
        'inventory_items': len(inventory),
        'sales_records': len(sales_store),
        'timestamp': datetime.now().isoformat()
    })


# =============================================================================
# Error Handlers
# =============================================================================

@app.errorhandler(SalesReportError)
def sales_report_error(e: SalesReportError):
    """Return structured errors with a status chosen by kind."""
    status = STATUS_BY_KIND.get(e.kind, 500)
    if status == 500:
        logger.error(f"Unhandled {e.kind}: {e.message}")
        return _error('An internal error occurred. Please try again.', 500)
    logger.warning(f"{e.kind}: {e.message}")
    return jsonify({'success': False, **e.to_dict()}), status


@app.errorhandler(413)
def file_too_large(e):
    """Handle file too large error."""
    return _error(f'File too large. Maximum size is {MAX_CONTENT_LENGTH // (1024 * 1024)} MB.', 413)


@app.errorhandler(500)
def internal_error(e):
    """Handle internal server error."""
    logger.error(f"Internal server error: {e}")
    return _error('An internal error occurred. Please try again.', 500)


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', 'false').lower() == 'true'

    logger.info(f"Starting {APP_NAME} v{APP_VERSION} on port {port}")
    logger.info(f"Loaded {len(inventory)} inventory items")

    app.run(host='0.0.0.0', port=port, debug=debug)

"""
SMS Analysis Review Service

A Flask-based tool for reviewing how bank messages are parsed. Messages are
posted one at a time or uploaded as TXT/JSON/ZIP dumps, run through the
analyzer, and returned with per-field results, confidence scores and an
aggregate summary. Results can be exported as CSV or JSON.

This tool is read-only: it never changes the reference data it analyzes with.
"""

import csv
import io
import json
import os
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request, send_file
from werkzeug.utils import secure_filename

from sms_batch_processor import HIGH_CONFIDENCE, MEDIUM_CONFIDENCE, MessageResult, SMSBatchProcessor
from sms_engine.config.context_loader import load_reference_context
from sms_engine.models import ReferenceContext


app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 50 * 1024 * 1024  # 50MB max upload

EXPORT_FIELDS = [
    'message_ref', 'file_name', 'success', 'confidence', 'transaction_type',
    'amount', 'transaction_date', 'merchant', 'account_name', 'category_name',
    'subcategory_name', 'description', 'errors', 'raw_sms',
]


def _load_context() -> ReferenceContext:
    """Reference data from SMS_REFERENCE_CONTEXT (JSON path), or an empty context."""
    context_path = os.environ.get('SMS_REFERENCE_CONTEXT')
    if context_path:
        return load_reference_context(context_path)
    return ReferenceContext()


processor = SMSBatchProcessor(_load_context())


def allowed_file(filename: str) -> bool:
    """Check if file extension is allowed."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ('txt', 'json', 'zip')


def parse_reference_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an optional YYYY-MM-DD reference date; raises ValueError when malformed."""
    if not value:
        return None
    return datetime.strptime(value, '%Y-%m-%d')


def to_record(message_result: MessageResult) -> Dict[str, Any]:
    """Flatten a message result into a JSON-friendly record."""
    result = message_result.result
    data = result.data.to_dict() if result.data else {}
    return {
        'message_ref': message_result.message_ref,
        'file_name': message_result.file_name,
        'success': result.success,
        'confidence': round(result.confidence, 3),
        'transaction_type': data.get('transaction_type'),
        'amount': data.get('amount'),
        'transaction_date': data.get('transaction_date'),
        'merchant': data.get('merchant', ''),
        'account_name': data.get('account_name'),
        'category_name': data.get('category_name'),
        'subcategory_name': data.get('subcategory_name'),
        'description': data.get('description', ''),
        'errors': '; '.join(result.errors),
        'raw_sms': data.get('raw_sms', ''),
    }


def generate_summary(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Generate aggregate summary statistics from analysis records.

    Args:
        records: List of records produced by ``to_record``

    Returns:
        Dictionary with summary statistics
    """
    summary = {
        'total_messages': len(records),
        'failed': 0,
        'by_type': defaultdict(int),
        'by_category': defaultdict(int),
        'by_confidence_level': {
            'high': 0,      # >= 0.80
            'medium': 0,    # 0.60 - 0.79
            'low': 0,       # < 0.60
        },
        'unmatched_accounts': 0,
        'low_confidence_messages': [],
    }

    for record in records:
        if not record['success']:
            summary['failed'] += 1
            continue

        summary['by_type'][record['transaction_type'] or 'unknown'] += 1
        category_key = f"{record['category_name'] or 'uncategorized'}/{record['subcategory_name'] or '-'}"
        summary['by_category'][category_key] += 1

        if not record['account_name']:
            summary['unmatched_accounts'] += 1

        confidence = record['confidence']
        if confidence >= HIGH_CONFIDENCE:
            summary['by_confidence_level']['high'] += 1
        elif confidence >= MEDIUM_CONFIDENCE:
            summary['by_confidence_level']['medium'] += 1
        else:
            summary['by_confidence_level']['low'] += 1
            # Track low confidence messages for review
            summary['low_confidence_messages'].append({
                'message_ref': record['message_ref'],
                'raw_sms': record['raw_sms'],
                'merchant': record['merchant'],
                'amount': record['amount'],
                'confidence': confidence,
            })

    # Convert defaultdicts to regular dicts for JSON serialization
    summary['by_type'] = dict(summary['by_type'])
    summary['by_category'] = dict(summary['by_category'])

    return summary


@app.route('/')
def index():
    """Service description and reference data overview."""
    context = processor.context
    return jsonify({
        'service': 'SMS analysis review',
        'endpoints': ['/analyze', '/upload', '/export/csv', '/export/json'],
        'reference_data': {
            'accounts': len(context.accounts),
            'cards': len(context.cards),
            'categories': len(context.categories),
            'subcategories': len(context.subcategories),
            'merchant_patterns': len(context.merchant_patterns),
        },
    })


@app.route('/analyze', methods=['POST'])
def analyze_message():
    """
    Analyze a single message.

    Expects JSON body ``{"text": "...", "now": "YYYY-MM-DD"}``; ``now`` is optional.
    """
    data = request.get_json(silent=True)
    if not data or 'text' not in data:
        return jsonify({'error': 'No text provided'}), 400

    try:
        now = parse_reference_date(data.get('now'))
    except ValueError:
        return jsonify({'error': "Invalid 'now' date, expected YYYY-MM-DD"}), 400

    result = processor.analyzer.analyze(data['text'], now)
    return jsonify(result.to_dict())


@app.route('/upload', methods=['POST'])
def upload_files():
    """
    Handle multiple file uploads and analyze every message they contain.

    Returns JSON with per-message results and summary statistics.
    """
    if 'files' not in request.files:
        return jsonify({'error': 'No files provided'}), 400

    files = request.files.getlist('files')

    if not files or all(f.filename == '' for f in files):
        return jsonify({'error': 'No files selected'}), 400

    try:
        now = parse_reference_date(request.form.get('now'))
    except ValueError:
        return jsonify({'error': "Invalid 'now' date, expected YYYY-MM-DD"}), 400

    uploads = []
    errors = []
    for file in files:
        if file and file.filename and allowed_file(file.filename):
            uploads.append((secure_filename(file.filename), file.read()))
        elif file and file.filename:
            errors.append({
                'filename': file.filename,
                'error': 'Invalid file type. Only TXT, JSON and ZIP files are allowed.'
            })

    batch = processor.process_batch(uploads, now=now)
    records = [to_record(r) for r in batch.results]
    errors.extend(
        {'filename': e.file_name, 'message_ref': e.message_ref, 'error': f"{e.error_type}: {e.error_message}"}
        for e in batch.errors
    )

    if not records and errors:
        return jsonify({'error': 'All files failed to process', 'details': errors}), 400

    response = {
        'success': True,
        'files_processed': batch.stats.processed_files,
        'total_messages': len(records),
        'results': records,
        'summary': generate_summary(records),
        'errors': errors if errors else None,
    }

    return jsonify(response)


def _results_from_request():
    data = request.get_json(silent=True)
    if not data or 'results' not in data:
        return None, (jsonify({'error': 'No results provided'}), 400)
    results = data['results']
    if not isinstance(results, list):
        app.logger.error(f"Export: Results is not a list, got {type(results)}")
        return None, (jsonify({'error': 'Results must be an array'}), 400)
    return results, None


@app.route('/export/csv', methods=['POST'])
def export_csv():
    """
    Export analysis results to CSV format.

    Expects JSON body with 'results' field containing analysis records.
    """
    results, error_response = _results_from_request()
    if error_response:
        app.logger.warning("CSV export: No usable results in request")
        return error_response

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS, restval='', extrasaction='ignore')
    writer.writeheader()
    for result in results:
        writer.writerow(result)

    csv_data = output.getvalue().encode('utf-8')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    app.logger.info(f"CSV export: Successfully exported {len(results)} results")

    return send_file(
        io.BytesIO(csv_data),
        mimetype='text/csv',
        as_attachment=True,
        download_name=f'sms_analysis_{timestamp}.csv'
    )


@app.route('/export/json', methods=['POST'])
def export_json():
    """
    Export analysis results to JSON format.

    Expects JSON body with 'results' field containing analysis records.
    """
    results, error_response = _results_from_request()
    if error_response:
        app.logger.warning("JSON export: No usable results in request")
        return error_response

    json_data = json.dumps(results, indent=2, ensure_ascii=False).encode('utf-8')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    app.logger.info(f"JSON export: Successfully exported {len(results)} results")

    return send_file(
        io.BytesIO(json_data),
        mimetype='application/json',
        as_attachment=True,
        download_name=f'sms_analysis_{timestamp}.json'
    )


if __name__ == '__main__':
    print("=" * 80)
    print("SMS Analysis Review Service")
    print("=" * 80)
    print("\nStarting service on http://localhost:5001")
    print("Set SMS_REFERENCE_CONTEXT to a reference JSON file to match accounts and categories.")
    print("\nPress Ctrl+C to stop the server.")
    print("=" * 80)

    # Set FLASK_DEBUG=1 only in development environments
    debug_mode = os.environ.get('FLASK_DEBUG', '0') == '1'
    app.run(debug=debug_mode, port=5001, host='127.0.0.1')

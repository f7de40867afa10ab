"""
Tests for the Flask review service.

The module-level processor runs without reference data (SMS_REFERENCE_CONTEXT
is not set), so only the bundled merchant dataset applies.
"""

import io
import json
import unittest

from review_dashboard import app, generate_summary

from sms_fixtures import CARD_PURCHASE_SMS, SALARY_SMS


class TestReviewDashboard(unittest.TestCase):
    """HTTP endpoints."""

    def setUp(self):
        app.config['TESTING'] = True
        self.client = app.test_client()

    def _upload(self, files, now='2024-01-20'):
        data = {'files': files}
        if now is not None:
            data['now'] = now
        return self.client.post('/upload', data=data, content_type='multipart/form-data')

    def test_index(self):
        response = self.client.get('/')
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertIn('/analyze', body['endpoints'])
        self.assertEqual(body['reference_data']['accounts'], 0)

    def test_analyze_single_message(self):
        response = self.client.post('/analyze', json={'text': CARD_PURCHASE_SMS, 'now': '2024-01-20'})
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['success'])
        self.assertEqual(body['data']['merchant'], 'Amazon')
        self.assertEqual(body['data']['amount'], 670.0)
        self.assertEqual(body['data']['transaction_date'], '2024-01-15T00:00:00')
        self.assertIsNone(body['data']['account_id'])

    def test_analyze_blank_text_is_a_failed_result(self):
        response = self.client.post('/analyze', json={'text': ''})
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.get_json()['success'])

    def test_analyze_bad_requests(self):
        self.assertEqual(self.client.post('/analyze', json={}).status_code, 400)
        self.assertEqual(self.client.post('/analyze', data='not json').status_code, 400)
        response = self.client.post('/analyze', json={'text': SALARY_SMS, 'now': '20/01/2024'})
        self.assertEqual(response.status_code, 400)

    def test_upload(self):
        response = self._upload([
            (io.BytesIO(f"{CARD_PURCHASE_SMS}\n{SALARY_SMS}\n".encode('utf-8')), 'alerts.txt'),
            (io.BytesIO(b'{'), 'broken.json'),
        ])
        self.assertEqual(response.status_code, 200)
        body = response.get_json()
        self.assertTrue(body['success'])
        self.assertEqual(body['files_processed'], 1)
        self.assertEqual(body['total_messages'], 2)
        self.assertEqual([r['message_ref'] for r in body['results']], ['alerts:1', 'alerts:2'])
        self.assertEqual(body['results'][0]['transaction_date'], '2024-01-15T00:00:00')
        self.assertEqual(len(body['errors']), 1)
        self.assertTrue(body['errors'][0]['error'].startswith('JSON_PARSE_ERROR'))

        summary = body['summary']
        self.assertEqual(summary['by_type'], {'debit': 1, 'credit': 1})
        self.assertEqual(summary['by_category'], {'uncategorized/-': 2})
        self.assertEqual(summary['unmatched_accounts'], 2)
        # without accounts or categories: 0.68 for the purchase, 0.5 for the salary
        self.assertEqual(summary['by_confidence_level'], {'high': 0, 'medium': 1, 'low': 1})
        self.assertEqual(summary['low_confidence_messages'][0]['message_ref'], 'alerts:2')

    def test_upload_rejections(self):
        self.assertEqual(self.client.post('/upload', data={}).status_code, 400)

        response = self._upload([(io.BytesIO(b'data'), 'photo.png')])
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'All files failed to process')

        response = self._upload([(io.BytesIO(SALARY_SMS.encode('utf-8')), 'alerts.txt')], now='yesterday')
        self.assertEqual(response.status_code, 400)

    def test_export_csv(self):
        records = [{'message_ref': 'alerts:1', 'merchant': 'Amazon', 'amount': 670.0, 'unused': 'x'}]
        response = self.client.post('/export/csv', json={'results': records})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, 'text/csv')
        self.assertIn('sms_analysis_', response.headers['Content-Disposition'])
        lines = response.data.decode('utf-8').splitlines()
        self.assertTrue(lines[0].startswith('message_ref,file_name,success'))
        self.assertTrue(lines[1].startswith('alerts:1,'))
        self.assertNotIn('unused', lines[0])

    def test_export_json(self):
        records = [{'message_ref': 'alerts:1', 'merchant': 'Amazon'}]
        response = self.client.post('/export/json', json={'results': records})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.mimetype, 'application/json')
        self.assertEqual(json.loads(response.data.decode('utf-8')), records)

    def test_export_bad_requests(self):
        for endpoint in ('/export/csv', '/export/json'):
            with self.subTest(endpoint=endpoint):
                self.assertEqual(self.client.post(endpoint, json={'data': []}).status_code, 400)
                self.assertEqual(self.client.post(endpoint, json={'results': 'nope'}).status_code, 400)
                self.assertEqual(self.client.post(endpoint, json={'results': []}).status_code, 200)


class TestGenerateSummary(unittest.TestCase):

    def test_failed_records_are_counted_separately(self):
        records = [
            {'message_ref': 'a:1', 'success': False, 'confidence': 0.0, 'transaction_type': None,
             'category_name': None, 'subcategory_name': None, 'account_name': None,
             'raw_sms': '', 'merchant': '', 'amount': None},
            {'message_ref': 'a:2', 'success': True, 'confidence': 0.9, 'transaction_type': 'debit',
             'category_name': 'Wants', 'subcategory_name': 'Online Shopping', 'account_name': 'HDFC Regalia',
             'raw_sms': CARD_PURCHASE_SMS, 'merchant': 'Amazon', 'amount': 670.0},
        ]
        summary = generate_summary(records)
        self.assertEqual(summary['total_messages'], 2)
        self.assertEqual(summary['failed'], 1)
        self.assertEqual(summary['by_category'], {'Wants/Online Shopping': 1})
        self.assertEqual(summary['by_confidence_level']['high'], 1)
        self.assertEqual(summary['unmatched_accounts'], 0)
        self.assertEqual(summary['low_confidence_messages'], [])


if __name__ == '__main__':
    unittest.main()

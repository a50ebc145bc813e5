"""
Integration tests for the sales profit analyzer.
"""
import io
import json
import os
import shutil
import sys
import tempfile
import unittest
from contextlib import redirect_stdout

import pandas as pd

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'sample_files'))

import main
from create_sample_xlsx import create_sample_csv, create_sample_xlsx
from costing.cost_resolver import CostResolver, InventoryEntry
from output.excel_generator import generate_sales_report_excel
from parsers.csv_parser import CSVSalesParser, parser_for_file
from parsers.errors import MalformedInputError, NoItemsFoundError, SpreadsheetReadError
from parsers.xlsx_parser import XLSXSalesParser, validate_upload
from storage.inventory_store import InventoryRepository
from storage.sales_store import SalesRecordStore


INVENTORY = [
    InventoryEntry(name="Chicken 65", cost_price=181, margin_percent=48, category="Food"),
    InventoryEntry(name="Crispy Corn", cost_price=120, margin_percent=52, category="Food"),
    InventoryEntry(name="Coke", cost_price=30, margin_percent=70, category="Bar"),
]

EXPECTED_ITEMS = ["Chicken 65", "Crispy Corn", "Coke", "Mystery Mocktail"]


class SampleFilesMixin:
    """Creates sample report files in a temporary directory."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        with redirect_stdout(io.StringIO()):
            self.xlsx_path = create_sample_xlsx(os.path.join(self.temp_dir, 'sales.xlsx'))
            self.csv_path = create_sample_csv(os.path.join(self.temp_dir, 'sales.csv'))

    def tearDown(self):
        shutil.rmtree(self.temp_dir, ignore_errors=True)


class TestXLSXParserIntegration(SampleFilesMixin, unittest.TestCase):
    """Integration tests for the XLSX parser."""

    def test_parse_sample_xlsx(self):
        """Test parsing the sample workbook."""
        parser = XLSXSalesParser(self.xlsx_path, CostResolver(INVENTORY))
        result = parser.parse()

        self.assertEqual([i.item_name for i in result.items], EXPECTED_ITEMS)
        self.assertEqual([c.name for c in result.categories], ["Dine In Food Menu", "Bar Menu"])
        self.assertEqual(result.restaurant_name, "Sunrise Hotel & Bar")
        self.assertEqual(result.date_range, "17-10-2025 to 18-10-2025")
        self.assertEqual(result.date, "2025-10-18")

        summary = result.summary
        self.assertEqual(summary.total_revenue, 1494)
        self.assertEqual(summary.total_cost, 572)
        self.assertEqual(summary.total_profit, 922)
        self.assertEqual(summary.total_orders, 7)
        self.assertAlmostEqual(summary.total_tax, 74.7)

        self.assertEqual([w.item_name for w in result.warnings], ["Mystery Mocktail"])
        self.assertIs(parser.result, result)
        self.assertEqual(parser.get_summary()['unresolved_costs'], 1)

    def test_get_summary_before_parse(self):
        """Test the summary of an unparsed file."""
        parser = XLSXSalesParser(self.xlsx_path, CostResolver(INVENTORY))
        self.assertEqual(parser.get_summary()['total_items'], 0)

    def test_row_limit(self):
        """Test oversized grids are rejected before parsing."""
        parser = XLSXSalesParser(self.xlsx_path, CostResolver(INVENTORY), max_rows=5)
        with self.assertRaises(MalformedInputError) as ctx:
            parser.parse()
        self.assertEqual(ctx.exception.details['max_rows'], 5)

    def test_unreadable_file(self):
        """Test a file that is not a workbook."""
        bad_path = os.path.join(self.temp_dir, 'bad.xlsx')
        with open(bad_path, 'wb') as f:
            f.write(b'this is not a spreadsheet')

        with self.assertRaises(SpreadsheetReadError) as ctx:
            XLSXSalesParser(bad_path, CostResolver(INVENTORY)).parse()
        self.assertEqual(ctx.exception.kind, "UnreadableFile")

    def test_workbook_without_items(self):
        """Test a workbook holding only headers."""
        path = os.path.join(self.temp_dir, 'empty.xlsx')
        pd.DataFrame([["Acme"], ["Group", "Item", "Qty"], ["Total", "", 0], ["Food"], ["Sub Total"]]).to_excel(
            path, index=False, header=False
        )
        with self.assertRaises(NoItemsFoundError):
            XLSXSalesParser(path, CostResolver(INVENTORY)).parse()


class TestCSVParserIntegration(SampleFilesMixin, unittest.TestCase):
    """Integration tests for the CSV parser."""

    def test_parse_sample_csv(self):
        """Test the CSV export parses like the workbook."""
        result = CSVSalesParser(self.csv_path, CostResolver(INVENTORY)).parse()
        self.assertEqual([i.item_name for i in result.items], EXPECTED_ITEMS)
        self.assertEqual(result.summary.total_revenue, 1494)
        self.assertEqual(result.summary.total_cost, 572)
        self.assertEqual(result.date, "2025-10-18")

    def test_csv_and_xlsx_agree(self):
        """Test both formats give the same items."""
        resolver = CostResolver(INVENTORY)
        from_csv = CSVSalesParser(self.csv_path, resolver).parse()
        from_xlsx = XLSXSalesParser(self.xlsx_path, resolver).parse()
        for a, b in zip(from_csv.items, from_xlsx.items):
            self.assertEqual(a.item_name, b.item_name)
            self.assertEqual(a.net_amount, b.net_amount)
            self.assertEqual(a.profit, b.profit)

    def test_parser_for_file(self):
        """Test parser selection by extension."""
        resolver = CostResolver(INVENTORY)
        self.assertIsInstance(parser_for_file(self.csv_path, resolver), CSVSalesParser)
        self.assertNotIsInstance(parser_for_file(self.xlsx_path, resolver), CSVSalesParser)

    def test_missing_file(self):
        """Test a missing CSV file."""
        with self.assertRaises(SpreadsheetReadError):
            CSVSalesParser(os.path.join(self.temp_dir, 'nope.csv'), CostResolver(INVENTORY)).parse()

    def test_cp1252_file(self):
        """Test encoding fallback."""
        path = os.path.join(self.temp_dir, 'legacy.csv')
        with open(path, 'w', encoding='cp1252', newline='') as f:
            f.write("Café Royale\r\n17-10-2025 to 18-10-2025\r\n\r\nFood\r\n,Crème Brûlée,2,300,0,300,15,315\r\n")
        result = CSVSalesParser(path, CostResolver(INVENTORY)).parse()
        self.assertEqual(result.restaurant_name, "Café Royale")
        self.assertEqual(result.items[0].item_name, "Crème Brûlée")


class TestValidateUpload(unittest.TestCase):
    """Tests for upload validation."""

    def test_supported_extensions(self):
        """Test Excel and CSV files are accepted."""
        for name in ("sales.xlsx", "SALES.XLS", "sales.csv"):
            with self.subTest(name=name):
                self.assertIsNone(validate_upload(name, 1024))

    def test_unsupported_extension(self):
        """Test other files are rejected."""
        self.assertIsNotNone(validate_upload("sales.pdf"))
        self.assertIsNotNone(validate_upload(""))

    def test_too_large(self):
        """Test the size limit."""
        self.assertIn("MB", validate_upload("sales.xlsx", 1024 * 1024 * 1024))


class TestExcelGeneratorIntegration(SampleFilesMixin, unittest.TestCase):
    """Integration tests for the Excel report."""

    def test_generate_excel_output(self):
        """Test generating the profit report."""
        result = XLSXSalesParser(self.xlsx_path, CostResolver(INVENTORY)).parse()
        output_path = os.path.join(self.temp_dir, 'profit.xlsx')

        self.assertEqual(generate_sales_report_excel(result, output_path), output_path)
        self.assertTrue(os.path.exists(output_path))

        xl = pd.ExcelFile(output_path)
        self.assertEqual(
            xl.sheet_names,
            ["Items", "Category Summary", "Unresolved Costs", "Summary"],
        )

        items = pd.read_excel(output_path, sheet_name="Items")
        self.assertEqual(len(items), 4)
        self.assertEqual(list(items["Item"]), EXPECTED_ITEMS)
        self.assertEqual(items["Profit"].sum(), 922)

        unresolved = pd.read_excel(output_path, sheet_name="Unresolved Costs")
        self.assertEqual(unresolved["Item"].iloc[0], "Mystery Mocktail")

        summary = pd.read_excel(output_path, sheet_name="Summary", header=None)
        labels = list(summary[0])
        self.assertIn("Profit Before Tax", labels)
        self.assertIn("Net Profit After Tax", labels)


class TestCommandLine(SampleFilesMixin, unittest.TestCase):
    """Tests for the command line entry point."""

    def run_main(self, *args):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main.main(list(args))
        return code, out.getvalue()

    def test_text_summary(self):
        """Test the default text output."""
        code, output = self.run_main('--input', self.xlsx_path)
        self.assertEqual(code, 0)
        self.assertIn("Net profit after tax", output)
        self.assertIn("Mystery Mocktail", output)

    def test_json_and_report(self):
        """Test JSON output and the Excel report."""
        output_path = os.path.join(self.temp_dir, 'profit.xlsx')
        code, output = self.run_main('--input', self.csv_path, '--json', '--output', output_path)
        self.assertEqual(code, 0)
        data = json.loads(output)
        self.assertEqual(len(data['items']), 4)
        self.assertTrue(os.path.exists(output_path))

    def test_exact_only(self):
        """Test fuzzy matching can be disabled from the command line."""
        path = os.path.join(self.temp_dir, 'menu.yaml')
        with open(path, 'w', encoding='utf-8') as f:
            f.write("items:\n  - {name: Chicken, cost_price: 100}\n")

        code, output = self.run_main('--input', self.xlsx_path, '--inventory', path, '--json', '--exact-only')
        self.assertEqual(code, 0)
        data = json.loads(output)
        self.assertEqual(len(data['warnings']), 4)

    def test_duplicate_inventory_names(self):
        """Test an inventory file with repeated names is reported, not raised."""
        path = os.path.join(self.temp_dir, 'menu.yaml')
        with open(path, 'w', encoding='utf-8') as f:
            f.write("items:\n  - {name: Coke, cost_price: 40}\n  - {name: coke, cost_price: 45}\n")

        code, output = self.run_main('--input', self.xlsx_path, '--inventory', path)
        self.assertEqual(code, 1)
        self.assertIn("Could not load inventory", output)
        self.assertIn("Item already exists: coke", output)

    def test_missing_input(self):
        """Test a missing input file."""
        code, output = self.run_main('--input', os.path.join(self.temp_dir, 'missing.xlsx'))
        self.assertEqual(code, 1)
        self.assertIn("not found", output)

    def test_unknown_extension(self):
        """Test an unsupported file type."""
        path = os.path.join(self.temp_dir, 'sales.pdf')
        open(path, 'w').close()
        code, _ = self.run_main('--input', path)
        self.assertEqual(code, 1)

    def test_no_items(self):
        """Test diagnostics are printed when no items are found."""
        path = os.path.join(self.temp_dir, 'headers.csv')
        with open(path, 'w', encoding='utf-8') as f:
            f.write("Acme\nGroup,Item,Qty\nTotal,,9\nFood\nSub Total\n")
        code, output = self.run_main('--input', path)
        self.assertEqual(code, 1)
        self.assertIn("Rows inspected: 5", output)


class TestWebApp(SampleFilesMixin, unittest.TestCase):
    """Tests for the Flask API."""

    def setUp(self):
        super().setUp()
        import app as app_module
        self.app_module = app_module
        self._saved = (app_module.inventory, app_module.sales_store)
        app_module.inventory = InventoryRepository([
            {'name': e.name, 'cost_price': e.cost_price,
             'margin_percent': e.margin_percent, 'category': e.category}
            for e in INVENTORY
        ])
        app_module.sales_store = SalesRecordStore()
        app_module.app.config['TESTING'] = True
        self.client = app_module.app.test_client()

    def tearDown(self):
        self.app_module.inventory, self.app_module.sales_store = self._saved
        super().tearDown()

    def upload(self, url, path, name=None):
        with open(path, 'rb') as f:
            content = f.read()
        return self.client.post(
            url,
            data={'file': (io.BytesIO(content), name or os.path.basename(path))},
            content_type='multipart/form-data',
        )

    def test_health(self):
        """Test the health check."""
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['status'], 'healthy')
        self.assertEqual(data['inventory_items'], 3)

    def test_parse_and_download(self):
        """Test parsing an upload and downloading its report."""
        response = self.upload('/api/parse', self.xlsx_path)
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertTrue(data['success'])
        self.assertEqual(len(data['data']['items']), 4)
        self.assertEqual(data['data']['summary']['total_revenue'], 1494)
        self.assertEqual(len(self.app_module.sales_store), 0)

        download = self.client.get(f"/download/{data['output_file']}")
        self.assertEqual(download.status_code, 200)
        download.close()

    def test_parse_exact_only(self):
        """Test the exact_only form flag."""
        path = os.path.join(self.temp_dir, 'fuzzy.csv')
        with open(path, 'w', encoding='utf-8') as f:
            f.write("Acme\n\n\nFood\n,Crispy Corn Basket,1,300,0,300,15,315\n")

        fuzzy = self.upload('/api/parse', path).get_json()
        self.assertEqual(fuzzy['data']['items'][0]['cost_match'], 'fuzzy')

        with open(path, 'rb') as f:
            response = self.client.post(
                '/api/parse',
                data={'file': (f, 'fuzzy.csv'), 'exact_only': 'true'},
                content_type='multipart/form-data',
            )
        self.assertEqual(response.get_json()['data']['items'][0]['cost_match'], 'unresolved')

    def test_parse_errors(self):
        """Test upload errors are structured."""
        response = self.client.post('/api/parse', data={}, content_type='multipart/form-data')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['kind'], 'MalformedInput')

        response = self.upload('/api/parse', self.xlsx_path, name='sales.pdf')
        self.assertEqual(response.status_code, 400)

        path = os.path.join(self.temp_dir, 'short.csv')
        with open(path, 'w', encoding='utf-8') as f:
            f.write("Acme\nFood\n")
        response = self.upload('/api/parse', path)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['details']['total_rows'], 2)

    def test_no_items_diagnostics(self):
        """Test NoItemsFound carries sample rows."""
        path = os.path.join(self.temp_dir, 'headers.csv')
        with open(path, 'w', encoding='utf-8') as f:
            f.write("Acme\nGroup,Item,Qty\nTotal,,9\nFood\nSub Total\n")
        response = self.upload('/api/parse', path)
        self.assertEqual(response.status_code, 400)
        data = response.get_json()
        self.assertEqual(data['kind'], 'NoItemsFound')
        self.assertEqual(len(data['details']['sample_rows']), 5)

    def test_download_invalid_names(self):
        """Test downloads are limited to generated files."""
        self.assertEqual(self.client.get('/download/missing.xlsx').status_code, 404)
        self.assertEqual(self.client.get('/download/bad-name.xlsx').status_code, 400)

    def test_sales_history(self):
        """Test saving, listing, fetching and deleting reports."""
        response = self.upload('/api/upload', self.xlsx_path)
        self.assertEqual(response.status_code, 201)
        record_id = response.get_json()['id']

        listing = self.client.get('/api/sales').get_json()
        self.assertEqual(listing['count'], 1)
        self.assertNotIn('items', listing['records'][0])
        self.assertIn('items', self.client.get('/api/sales?full=true').get_json()['records'][0])
        self.assertEqual(self.client.get('/api/sales?start_date=2025-11-01').get_json()['count'], 0)

        record = self.client.get(f'/api/sales/{record_id}').get_json()['record']
        self.assertEqual(record['top_performers'][0]['item_name'], 'Chicken 65')
        self.assertEqual(record['file_name'], 'sales.xlsx')

        self.assertEqual(self.client.delete(f'/api/sales/{record_id}').status_code, 200)
        response = self.client.get(f'/api/sales/{record_id}')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['kind'], 'NotFound')

    def test_save_parsed_json(self):
        """Test saving a parsed result sent back as JSON."""
        parsed = self.upload('/api/parse', self.xlsx_path).get_json()['data']
        parsed['file_name'] = 'sales.xlsx'

        response = self.client.post('/api/sales', json=parsed)
        self.assertEqual(response.status_code, 201)
        record = response.get_json()['record']
        self.assertEqual(record['total_revenue'], 1494)

        response = self.client.delete(f"/api/sales?id={record['id']}")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.delete(f"/api/sales?id={record['id']}").status_code, 404)
        self.assertEqual(self.client.delete('/api/sales').status_code, 400)

        response = self.client.post('/api/sales', json={'items': []})
        self.assertEqual(response.status_code, 400)

    def test_inventory_crud(self):
        """Test inventory routes."""
        listing = self.client.get('/api/inventory').get_json()
        self.assertEqual(listing['count'], 3)
        self.assertEqual(self.client.get('/api/inventory?category=Bar').get_json()['count'], 1)

        response = self.client.post('/api/inventory', json={
            'name': 'Lassi', 'selling_price': 100, 'margin_percent': 60, 'category': 'Bar',
        })
        self.assertEqual(response.status_code, 201)
        item = response.get_json()['item']
        self.assertEqual(item['cost_price'], 40.0)

        duplicate = self.client.post('/api/inventory', json={'name': 'lassi', 'cost_price': 1})
        self.assertEqual(duplicate.status_code, 409)
        self.assertEqual(duplicate.get_json()['kind'], 'Conflict')

        self.assertEqual(self.client.post('/api/inventory', json={'cost_price': 1}).status_code, 400)

        updated = self.client.put('/api/inventory', json={'id': item['id'], 'cost_price': 45})
        self.assertEqual(updated.get_json()['item']['cost_price'], 45.0)
        self.assertEqual(self.client.put('/api/inventory', json={'id': 999}).status_code, 404)

        found = self.client.get('/api/inventory?name=LASSI').get_json()
        self.assertEqual(found['item']['id'], item['id'])
        self.assertEqual(self.client.get('/api/inventory?name=Nothing').status_code, 404)

        stats = self.client.get('/api/inventory?stats=true').get_json()
        self.assertEqual(stats['total_items'], 4)

        self.assertEqual(self.client.delete(f"/api/inventory?id={item['id']}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/inventory?id={item['id']}").status_code, 404)

    def test_inventory_change_does_not_affect_saved_reports(self):
        """Test saved reports keep the costs they were parsed with."""
        record_id = self.upload('/api/upload', self.xlsx_path).get_json()['id']
        coke = self.client.get('/api/inventory?name=Coke').get_json()['item']
        self.client.put('/api/inventory', json={'id': coke['id'], 'cost_price': 90})

        record = self.client.get(f'/api/sales/{record_id}').get_json()['record']
        self.assertEqual(record['total_cost'], 572)

    def test_analytics(self):
        """Test analytics over saved reports and ad-hoc items."""
        self.upload('/api/upload', self.xlsx_path)
        self.upload('/api/upload', self.csv_path)

        data = self.client.get('/api/analytics').get_json()
        self.assertEqual(data['stats']['record_count'], 2)
        self.assertEqual(data['stats']['total_revenue'], 2 * 1494)
        self.assertEqual(data['top_items'][0]['name'], 'Chicken 65')
        self.assertEqual(len(data['daily_trends']), 1)

        response = self.client.post('/api/analytics', json={'items': [
            {'item_name': 'Coke', 'quantity': 2, 'net_amount': 198},
        ]})
        self.assertEqual(response.status_code, 200)
        result = response.get_json()
        self.assertEqual(result['summary']['total_cost'], 60)
        self.assertEqual(self.client.post('/api/analytics', json={}).status_code, 400)


if __name__ == '__main__':
    unittest.main()

import unittest
from unittest.mock import patch

from lyz.export import export_plan, render_plan_html
from lyz.models import PatientPlan, db
from lyz.tests.base import ApiTestCase

FINAL_PLAN = {
    "patientData": {"name": "Maria <Silva>", "age": 34},
    "generalPlan": {"dietaryRecommendations": "Mais folhas verdes", "supplementation": None},
    "cyclicalPlan": {"follicular": "Treino de força", "luteal": None},
    "aiGeneratedContent": "Plano completo",
}


class ExportTests(ApiTestCase):
    def plan_with_final(self, final_plan=FINAL_PLAN):
        plan_id = self.start_plan()
        plan = db.session.get(PatientPlan, plan_id)
        plan.final_plan = final_plan
        db.session.commit()
        return plan_id

    def test_render_only_filled_sections(self):
        plan = db.session.get(PatientPlan, self.plan_with_final())
        with self.app.test_request_context():
            html = render_plan_html(plan)
        self.assertIn("Recomendações Alimentares", html)
        self.assertNotIn("Suplementação", html)
        self.assertIn("Fase Folicular", html)
        self.assertNotIn("Fase Lútea", html)
        self.assertIn("Plano completo", html)
        self.assertIn("Maria &lt;Silva&gt;", html)

    @patch("lyz.export.html_to_pdf", return_value=b"%PDF-fake")
    def test_export_pdf(self, html_to_pdf):
        plan_id = self.plan_with_final()
        response = self.client.get(f"/api/plans/{plan_id}/export?format=pdf", headers=self.headers())
        self.assertEqual(response.status_code, 200)

        body = response.get_json()
        key = f"plans/{body['file_name']}"
        self.assertTrue(body["file_name"].startswith(f"plan_{plan_id}_"))
        self.assertTrue(body["file_name"].endswith(".pdf"))
        self.assertEqual(self.storage.objects[key], (b"%PDF-fake", "application/pdf"))
        self.assertEqual(body["download_url"], self.storage.presigned_url(key))
        html_to_pdf.assert_called_once()

    @patch("lyz.export.html_to_pdf")
    def test_export_word(self, html_to_pdf):
        plan_id = self.plan_with_final()
        response = self.client.get(f"/api/plans/{plan_id}/export?format=docx", headers=self.headers())
        self.assertEqual(response.status_code, 200)

        file_name = response.get_json()["file_name"]
        self.assertTrue(file_name.endswith(".doc"))
        data, content_type = self.storage.objects[f"plans/{file_name}"]
        self.assertEqual(content_type, "application/msword")
        self.assertIn("Plano completo", data.decode("utf-8"))
        html_to_pdf.assert_not_called()

    def test_unknown_format(self):
        plan_id = self.plan_with_final()
        response = self.client.get(f"/api/plans/{plan_id}/export?format=odt", headers=self.headers())
        self.assertEqual(response.status_code, 400)

    def test_plan_not_generated(self):
        plan_id = self.start_plan()
        response = self.client.get(f"/api/plans/{plan_id}/export", headers=self.headers())
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.storage.objects, {})

    @patch("lyz.export.html_to_pdf", side_effect=ImportError("WeasyPrint not installed"))
    def test_conversion_failure(self, html_to_pdf):
        plan_id = self.plan_with_final()
        response = self.client.get(f"/api/plans/{plan_id}/export", headers=self.headers())
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.get_json()["message"], "Failed to export plan")
        self.assertEqual(self.storage.objects, {})

    def test_export_plan_result(self):
        plan = db.session.get(PatientPlan, self.plan_with_final())
        with patch("lyz.export.html_to_pdf", return_value=b"pdf"), self.app.test_request_context():
            result = export_plan(plan, "pdf")
        self.assertTrue(result["success"])
        self.assertIn(result["fileName"], result["url"])


if __name__ == '__main__':
    unittest.main()

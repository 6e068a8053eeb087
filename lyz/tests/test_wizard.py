import unittest
from types import SimpleNamespace

from lyz.schemas import IfmMatrix, PatientData, PayloadError, QuestionnaireData, validate_payload
from lyz.wizard import current_stage, missing_stages, stage_progress


def make_plan(**fields):
    columns = ("questionnaire_data", "lab_results", "tcm_observations",
               "timeline_data", "ifm_matrix", "final_plan")
    return SimpleNamespace(**{c: fields.get(c) for c in columns})


class WizardTests(unittest.TestCase):
    def test_new_plan_starts_at_questionnaire(self):
        plan = make_plan()
        self.assertEqual(current_stage(plan), "questionnaire")
        self.assertEqual(missing_stages(plan, "questionnaire"), [])

    def test_out_of_order_stages(self):
        """Test que una matriz sin cuestionario sigue siendo un plan valido"""
        plan = make_plan(ifm_matrix={"notes": "x"})
        self.assertEqual(current_stage(plan), "questionnaire")
        self.assertEqual(missing_stages(plan, "final"),
                         ["questionnaire", "lab", "tcm", "timeline"])

    def test_complete_plan(self):
        plan = make_plan(**{c: {"k": 1} for c in (
            "questionnaire_data", "lab_results", "tcm_observations",
            "timeline_data", "ifm_matrix", "final_plan")})
        progress = stage_progress(plan)
        self.assertIsNone(progress["current"])
        self.assertTrue(all(s["complete"] for s in progress["stages"]))
        self.assertFalse(any(s["current"] for s in progress["stages"]))

    def test_progress_marks_current(self):
        plan = make_plan(questionnaire_data={"a": 1}, lab_results={"fileUrl": "u", "fileName": "f"})
        progress = stage_progress(plan)
        self.assertEqual(progress["current"], "tcm")
        current = [s["stage"] for s in progress["stages"] if s["current"]]
        self.assertEqual(current, ["tcm"])
        self.assertEqual(progress["stages"][-1]["missing"], ["tcm", "timeline", "matrix"])


class PayloadTests(unittest.TestCase):
    def test_payload_returned_unchanged(self):
        payload = {"name": "Maria", "age": 30, "favourite_tea": "camomila"}
        self.assertIs(validate_payload(PatientData, payload, "patient data"), payload)

    def test_empty_payload(self):
        with self.assertRaises(PayloadError):
            validate_payload(QuestionnaireData, {}, "questionnaire data")
        with self.assertRaises(PayloadError):
            validate_payload(QuestionnaireData, ["not", "an", "object"], "questionnaire data")

    def test_errors_name_the_field(self):
        with self.assertRaises(PayloadError) as ctx:
            validate_payload(IfmMatrix, {"energy": {"items": [{"name": "x", "value": 9}]}}, "IFM matrix")
        self.assertEqual(ctx.exception.errors[0]["field"], "energy.items.0.value")

    def test_patient_name_required(self):
        with self.assertRaises(PayloadError):
            validate_payload(PatientData, {"age": 30}, "patient data")


if __name__ == '__main__':
    unittest.main()

import logging
import time

from flask import Blueprint, g, jsonify, request
from werkzeug.utils import secure_filename

from lyz.auth import is_superadmin, token_required
from lyz.export import export_plan
from lyz.llm import generate_ai_response
from lyz.models import PatientPlan, db
from lyz.routes.helpers import json_body
from lyz.s3client import get_storage
from lyz.schemas import (
    PROFESSIONAL_TYPES,
    FinalPlan,
    IfmMatrix,
    LabResults,
    PatientData,
    PayloadError,
    QuestionnaireData,
    TcmObservations,
    TimelineData,
    validate_payload,
)
from lyz.wizard import stage_progress

logger = logging.getLogger(__name__)

bp = Blueprint("plans", __name__)


@token_required
def _authenticate():
    pass


@bp.before_request
def require_token():
    """All plan routes need a bearer token; CORS preflights carry none"""
    if request.method == "OPTIONS":
        return None
    return _authenticate()


def _payload_error(e):
    return jsonify({"message": str(e), "errors": e.errors}), 400


def _load_plan(plan_id, action):
    """Return (plan, None) or (None, error response) for the calling user"""
    plan = db.session.get(PatientPlan, plan_id)
    if not plan:
        return None, (jsonify({"message": "Plan not found"}), 404)
    if plan.user_id != g.current_user["id"] and not is_superadmin():
        return None, (jsonify({"message": f"Not authorized to {action} this plan"}), 403)
    return plan, None


def _ai_reply(result, ok_message, failed_message, key):
    if result["success"]:
        return jsonify({"message": ok_message, key: result["data"]})
    return jsonify({"message": failed_message, "error": result["message"]})


@bp.route("/start", methods=["POST"])
def start_plan():
    data = json_body()
    professional_type = data.get("professional_type")
    patient_data = data.get("patient_data")

    if not professional_type or not patient_data:
        return jsonify({"message": "Professional type and patient data are required"}), 400
    if professional_type not in PROFESSIONAL_TYPES:
        return jsonify({"message": f"Professional type must be one of: {', '.join(PROFESSIONAL_TYPES)}"}), 400

    try:
        validate_payload(PatientData, patient_data, "patient data")
    except PayloadError as e:
        return _payload_error(e)

    try:
        plan = PatientPlan(
            user_id=g.current_user["id"],
            company_id=g.current_user["company_id"],
            professional_type=professional_type,
            patient_data=patient_data,
        )
        db.session.add(plan)
        db.session.commit()

        logger.info(f"Started plan {plan.id} for user {plan.user_id}")
        return jsonify({"message": "Plan started successfully", "plan_id": plan.id}), 201
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error starting plan: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/<int:plan_id>/questionnaire", methods=["POST"])
def update_questionnaire(plan_id):
    data = json_body()
    questionnaire_data = data.get("questionnaire_data")
    if not questionnaire_data:
        return jsonify({"message": "Questionnaire data is required"}), 400

    try:
        validate_payload(QuestionnaireData, questionnaire_data, "questionnaire data")
    except PayloadError as e:
        return _payload_error(e)

    try:
        plan, error = _load_plan(plan_id, "update")
        if error:
            return error

        plan.questionnaire_data = questionnaire_data
        db.session.commit()

        result = generate_ai_response(
            g.current_user["id"],
            plan.company_id,
            "questionnaire_organization",
            {"patientData": plan.patient_data, "questionnaireData": questionnaire_data},
        )
        return _ai_reply(
            result,
            "Questionnaire updated successfully",
            "Questionnaire updated but analysis failed",
            "analyzed_data",
        )
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating questionnaire: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


def extract_text(content, mimetype):
    # only plain-text uploads can be read without an OCR/PDF toolchain
    if mimetype and mimetype.startswith("text/"):
        return content.decode("utf-8", errors="replace")
    return f"Text extraction is not available for {mimetype or 'this file type'}"


@bp.route("/<int:plan_id>/lab-results", methods=["POST"])
def update_lab_results(plan_id):
    upload = request.files.get("file")
    if not upload or not upload.filename:
        return jsonify({"message": "Lab results file is required"}), 400

    try:
        plan, error = _load_plan(plan_id, "update")
        if error:
            return error

        content = upload.read()
        file_name = f"lab-results/{plan.id}/{int(time.time() * 1000)}_{secure_filename(upload.filename)}"
        storage = get_storage()
        storage.upload_bytes(file_name, content, upload.mimetype or "application/octet-stream")
        file_url = storage.presigned_url(file_name)

        extracted_text = extract_text(content, upload.mimetype)

        company_id, patient_data = plan.company_id, plan.patient_data
        result = generate_ai_response(
            g.current_user["id"],
            company_id,
            "lab_results_analysis",
            {"patientData": patient_data, "labResultsText": extracted_text},
        )

        lab_results = {
            "fileUrl": file_url,
            "fileName": file_name,
            "extractedText": extracted_text,
            "analysis": result["data"] if result["success"] else "Analysis failed",
        }
        validate_payload(LabResults, lab_results, "lab results")

        plan = db.session.get(PatientPlan, plan_id)
        plan.lab_results = lab_results
        db.session.commit()

        return jsonify({
            "message": "Lab results uploaded and analyzed successfully",
            "lab_results": lab_results,
        })
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error processing lab results: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/<int:plan_id>/tcm", methods=["POST"])
def update_tcm_observations(plan_id):
    data = json_body()
    tcm_observations = data.get("tcm_observations")
    if not tcm_observations:
        return jsonify({"message": "TCM observations are required"}), 400

    try:
        validate_payload(TcmObservations, tcm_observations, "TCM observations")
    except PayloadError as e:
        return _payload_error(e)

    try:
        plan, error = _load_plan(plan_id, "update")
        if error:
            return error

        plan.tcm_observations = tcm_observations
        db.session.commit()

        result = generate_ai_response(
            g.current_user["id"],
            plan.company_id,
            "tcm_analysis",
            {
                "patientData": plan.patient_data,
                "tcmObservations": tcm_observations,
                "questionnaireData": plan.questionnaire_data,
            },
        )
        return _ai_reply(
            result,
            "TCM observations updated successfully",
            "TCM observations updated but analysis failed",
            "analyzed_data",
        )
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating TCM observations: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/<int:plan_id>/timeline", methods=["POST"])
def update_timeline(plan_id):
    data = json_body()
    timeline_data = data.get("timeline_data")
    if not timeline_data:
        return jsonify({"message": "Timeline data is required"}), 400

    try:
        validate_payload(TimelineData, timeline_data, "timeline data")
    except PayloadError as e:
        return _payload_error(e)

    try:
        plan, error = _load_plan(plan_id, "update")
        if error:
            return error

        plan.timeline_data = timeline_data
        db.session.commit()

        if not data.get("generate_ai_timeline"):
            return jsonify({"message": "Timeline updated successfully"})

        result = generate_ai_response(
            g.current_user["id"],
            plan.company_id,
            "timeline_generation",
            {
                "patientData": plan.patient_data,
                "questionnaireData": plan.questionnaire_data,
                "labResults": plan.lab_results,
                "tcmObservations": plan.tcm_observations,
            },
        )
        return _ai_reply(
            result,
            "Timeline updated successfully",
            "Timeline updated but AI suggestion failed",
            "ai_suggested_timeline",
        )
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating timeline: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/<int:plan_id>/ifm-matrix", methods=["POST"])
def update_ifm_matrix(plan_id):
    data = json_body()
    ifm_matrix = data.get("ifm_matrix")
    if not ifm_matrix:
        return jsonify({"message": "IFM matrix data is required"}), 400

    try:
        validate_payload(IfmMatrix, ifm_matrix, "IFM matrix")
    except PayloadError as e:
        return _payload_error(e)

    try:
        plan, error = _load_plan(plan_id, "update")
        if error:
            return error

        plan.ifm_matrix = ifm_matrix
        db.session.commit()

        if not data.get("generate_ai_matrix"):
            return jsonify({"message": "IFM matrix updated successfully"})

        result = generate_ai_response(
            g.current_user["id"],
            plan.company_id,
            "ifm_matrix_generation",
            {
                "patientData": plan.patient_data,
                "questionnaireData": plan.questionnaire_data,
                "labResults": plan.lab_results,
                "tcmObservations": plan.tcm_observations,
                "timelineData": plan.timeline_data,
            },
        )
        return _ai_reply(
            result,
            "IFM matrix updated successfully",
            "IFM matrix updated but AI suggestion failed",
            "ai_suggested_matrix",
        )
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating IFM matrix: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/<int:plan_id>/final", methods=["POST"])
def update_final_plan(plan_id):
    data = json_body()
    final_plan = data.get("final_plan")
    if not final_plan:
        return jsonify({"message": "Final plan data is required"}), 400

    try:
        validate_payload(FinalPlan, final_plan, "final plan")
    except PayloadError as e:
        return _payload_error(e)

    try:
        plan, error = _load_plan(plan_id, "update")
        if error:
            return error

        plan.final_plan = final_plan
        db.session.commit()

        return jsonify({"message": "Final plan updated successfully", "final_plan": final_plan})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating final plan: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


def build_final_plan(plan, ai_content):
    """
    Structured plan document wrapped around the generated text.

    Section slots start empty and are filled in by the professional through
    POST /<id>/final; the menopausal slot only exists for menopausal patients.
    """
    patient_data = plan.patient_data or {}
    cyclical = {"follicular": None, "ovulatory": None, "luteal": None, "menstrual": None}
    if patient_data.get("is_menopausal"):
        cyclical["menopausal"] = None
    return {
        "patientData": patient_data,
        "generalPlan": {
            "dietaryRecommendations": None,
            "supplementation": None,
            "lifestyleChanges": None,
            "stressManagement": None,
        },
        "cyclicalPlan": cyclical,
        "aiGeneratedContent": ai_content,
    }


@bp.route("/<int:plan_id>/generate", methods=["POST"])
def generate_final_plan(plan_id):
    try:
        plan, error = _load_plan(plan_id, "generate")
        if error:
            return error

        if not plan.questionnaire_data:
            return jsonify({"message": "Questionnaire data is required to generate plan"}), 400

        prompt_key = (
            "plan_medical_nutritionist"
            if plan.professional_type == "medical_nutritionist"
            else "plan_other_professional"
        )

        result = generate_ai_response(
            g.current_user["id"],
            plan.company_id,
            prompt_key,
            {
                "patientData": plan.patient_data,
                "questionnaireData": plan.questionnaire_data,
                "labResults": plan.lab_results,
                "tcmObservations": plan.tcm_observations,
                "timelineData": plan.timeline_data,
                "ifmMatrix": plan.ifm_matrix,
            },
        )
        if not result["success"]:
            return jsonify({"message": "Failed to generate plan", "error": result["message"]}), 500

        plan = db.session.get(PatientPlan, plan_id)
        final_plan = build_final_plan(plan, result["data"])
        plan.final_plan = final_plan
        db.session.commit()

        return jsonify({"message": "Plan generated successfully", "final_plan": final_plan})
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error generating final plan: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/<int:plan_id>/export", methods=["GET"])
def export(plan_id):
    fmt = request.args.get("format", "pdf")
    if fmt not in ("pdf", "docx"):
        return jsonify({"message": "Format must be pdf or docx"}), 400

    try:
        plan, error = _load_plan(plan_id, "export")
        if error:
            return error

        if not plan.final_plan:
            return jsonify({"message": "Plan has not been generated yet"}), 400

        result = export_plan(plan, fmt)
        if not result["success"]:
            return jsonify({"message": "Failed to export plan", "error": result["message"]}), 500

        return jsonify({
            "message": "Plan exported successfully",
            "download_url": result["url"],
            "file_name": result["fileName"],
        })
    except Exception as e:
        logger.error(f"Error exporting plan: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("", methods=["GET"])
@bp.route("/", methods=["GET"])
def list_plans():
    try:
        plans = (
            PatientPlan.query.filter_by(user_id=g.current_user["id"])
            .order_by(PatientPlan.created_at.desc(), PatientPlan.id.desc())
            .all()
        )
        return jsonify({"plans": [p.summary() for p in plans]})
    except Exception as e:
        logger.error(f"Error fetching user plans: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500


@bp.route("/<int:plan_id>", methods=["GET"])
def get_plan(plan_id):
    try:
        plan, error = _load_plan(plan_id, "view")
        if error:
            return error

        return jsonify({"plan": plan.to_dict(), "progress": stage_progress(plan)})
    except Exception as e:
        logger.error(f"Error fetching plan: {e}", exc_info=True)
        return jsonify({"message": "Internal server error"}), 500

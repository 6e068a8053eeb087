"""Final-plan documents: HTML rendering, PDF/Word conversion, upload."""
import logging
import time
from datetime import date

from flask import render_template

from lyz.s3client import get_storage

logger = logging.getLogger(__name__)

GENERAL_SECTIONS = (
    ("dietaryRecommendations", "Recomendações Alimentares"),
    ("supplementation", "Suplementação"),
    ("lifestyleChanges", "Modificações de Estilo de Vida"),
    ("stressManagement", "Gerenciamento de Estresse"),
)

PHASES = (
    ("follicular", "Fase Folicular"),
    ("ovulatory", "Fase Ovulatória"),
    ("luteal", "Fase Lútea"),
    ("menstrual", "Fase Menstrual"),
    ("menopausal", "Recomendações para Climatério/Menopausa"),
)

FORMATS = {
    "pdf": ("pdf", "application/pdf"),
    # Word opens HTML documents saved with a .doc extension
    "docx": ("doc", "application/msword"),
}


def render_plan_html(plan):
    final_plan = plan.final_plan or {}
    patient = final_plan.get("patientData") or plan.patient_data or {}
    general = final_plan.get("generalPlan") or {}
    cyclical = final_plan.get("cyclicalPlan") or {}

    return render_template(
        "plan.html",
        patient=patient,
        general_sections=[(title, general[key]) for key, title in GENERAL_SECTIONS if general.get(key)],
        phases=[(title, cyclical[key]) for key, title in PHASES if cyclical.get(key)],
        ai_content=final_plan.get("aiGeneratedContent"),
        generated_date=date.today().strftime("%d/%m/%Y"),
    )


def html_to_pdf(html):
    try:
        from weasyprint import HTML
    except ImportError as e:
        raise ImportError(
            "WeasyPrint not installed. Install with: pip install weasyprint"
        ) from e
    return HTML(string=html).write_pdf()


def export_plan(plan, fmt="pdf"):
    """Render, upload and presign a plan document; never raises"""
    extension, content_type = FORMATS.get(fmt, FORMATS["pdf"])
    try:
        html = render_plan_html(plan)
        body = html_to_pdf(html) if extension == "pdf" else html.encode("utf-8")

        file_name = f"plan_{plan.id}_{int(time.time() * 1000)}.{extension}"
        key = f"plans/{file_name}"
        storage = get_storage()
        storage.upload_bytes(key, body, content_type)
        url = storage.presigned_url(key)

        logger.info(f"Exported plan {plan.id} as {extension}: {key}")
        return {"success": True, "url": url, "fileName": file_name}
    except Exception as e:
        logger.error(f"Error exporting plan {plan.id}: {e}", exc_info=True)
        return {"success": False, "message": "Failed to export plan"}

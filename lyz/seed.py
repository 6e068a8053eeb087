"""Initial data: default company, first superadmin and the generation prompts."""
import logging

import click
from flask import current_app

from lyz.models import Company, Prompt, User, db
from lyz.s3client import get_storage

logger = logging.getLogger(__name__)

DEFAULT_COMPANY = {"name": "Lyz Healthcare", "token_limit": 100000}

INITIAL_PROMPTS = [
    {
        "step_key": "questionnaire_organization",
        "content": """Você é Lyz, a primeira assistente especializada em ciclicidade feminina. Seu tom é profissional, elegante, delicado e amável.

Analise os dados da paciente fornecidos e organize-os nas seguintes categorias:
1. Informações pessoais básicas
2. Histórico menstrual e hormonal
3. Sintomas principais
4. Estilo de vida atual
5. Histórico de saúde relevante
6. Objetivos do tratamento

Apresente os dados de forma organizada e clara.""",
        "temperature": 0.7,
        "max_tokens": 1500,
    },
    {
        "step_key": "lab_results_analysis",
        "content": """Você é Lyz, especialista em ciclicidade feminina.

Analise os resultados laboratoriais fornecidos como um médico integrativo funcional especializado em saúde feminina.

Para cada valor, indique:
1. Se está dentro das faixas de referência convencionais
2. Se está dentro das faixas ideais da medicina funcional
3. Possíveis implicações para a ciclicidade feminina
4. Correlações com os sintomas relatados""",
        "temperature": 0.7,
        "max_tokens": 2000,
    },
    {
        "step_key": "tcm_analysis",
        "content": """Você é Lyz, especialista em ciclicidade feminina.

Com base nas observações fornecidas sobre a face e língua da paciente, realize uma análise segundo os princípios da medicina tradicional chinesa:

1. Identifique possíveis desequilíbrios energéticos
2. Relacione com o ciclo menstrual e hormonal
3. Conecte com as queixas principais
4. Sugira padrões de MTC relevantes para o caso""",
        "temperature": 0.7,
        "max_tokens": 1500,
    },
    {
        "step_key": "timeline_generation",
        "content": """Você é Lyz, especialista em ciclicidade feminina.

Baseando-se em todas as informações fornecidas até agora, crie uma linha do tempo cronológica seguindo o formato do Instituto de Medicina Funcional (IFM):

1. Organize os eventos significativos na vida da paciente
2. Destaque momentos de início ou piora dos sintomas
3. Marque períodos de tratamentos anteriores
4. Identifique possíveis gatilhos ou correlações temporais""",
        "temperature": 0.7,
        "max_tokens": 2000,
    },
    {
        "step_key": "ifm_matrix_generation",
        "content": """Você é Lyz, especialista em ciclicidade feminina.

Com base em todas as informações coletadas, preencha a Matriz do Instituto de Medicina Funcional (IFM) com foco na ciclicidade feminina:

1. Antecedentes (genéticos, experiências de vida)
2. Gatilhos (infecções, alergias, toxinas, estresse)
3. Mediadores (sistema imune, hormônios, neurotransmissores)
4. Fatores de estilo de vida (sono, exercício, nutrição, estresse)
5. Desequilíbrios fundamentais (digestivos, energéticos, estruturais)""",
        "temperature": 0.7,
        "max_tokens": 2000,
    },
    {
        "step_key": "plan_medical_nutritionist",
        "content": """Você é Lyz, especialista em ciclicidade feminina.

Com base em todas as análises e informações fornecidas, crie um plano completo personalizado para a paciente que inclua:

PLANO GERAL:
1. Recomendações alimentares funcionais específicas
2. Suplementação com dosagens precisas e cronograma
3. Modificações de estilo de vida prioritárias
4. Estratégias para gerenciamento de estresse

PLANO CÍCLICO:
1. Recomendações específicas para fase folicular
2. Recomendações específicas para fase ovulatória
3. Recomendações específicas para fase lútea
4. Recomendações específicas para fase menstrual
5. Ajustes para climatério/menopausa (se aplicável)

Inclua justificativas clínicas baseadas nos resultados e observações.""",
        "temperature": 0.7,
        "max_tokens": 3000,
    },
    {
        "step_key": "plan_other_professional",
        "content": """Você é Lyz, especialista em ciclicidade feminina.

Com base em todas as análises e informações fornecidas, crie um plano completo personalizado para a paciente que inclua:

PLANO GERAL:
1. Recomendações alimentares funcionais (tipos de alimentos, não quantidades)
2. Categorias de suplementos que podem ser benéficos (sem dosagens específicas)
3. Modificações de estilo de vida prioritárias
4. Estratégias para gerenciamento de estresse

PLANO CÍCLICO:
1. Recomendações específicas para fase folicular
2. Recomendações específicas para fase ovulatória
3. Recomendações específicas para fase lútea
4. Recomendações específicas para fase menstrual
5. Ajustes para climatério/menopausa (se aplicável)

Evite prescrever dosagens específicas e sugira encaminhamento para médico/nutricionista quando necessário.""",
        "temperature": 0.7,
        "max_tokens": 3000,
    },
]


def seed_initial_data(email=None, password=None, name=None):
    """Find-or-create the default company, superadmin and prompts; idempotent"""
    config = current_app.config
    email = email or config["SUPERADMIN_EMAIL"]

    company = Company.query.filter_by(name=DEFAULT_COMPANY["name"]).first()
    if not company:
        company = Company(**DEFAULT_COMPANY)
        db.session.add(company)
        db.session.flush()
        logger.info(f"Company {company.name} created")

    superadmin = User.query.filter_by(email=email).first()
    if not superadmin:
        superadmin = User(
            name=name or config["SUPERADMIN_NAME"],
            email=email,
            role="superadmin",
            company_id=company.id,
        )
        superadmin.set_password(password or config["SUPERADMIN_PASSWORD"])
        db.session.add(superadmin)
        db.session.flush()
        logger.info(f"Superadmin {email} created")

    created = 0
    for data in INITIAL_PROMPTS:
        if not Prompt.query.filter_by(step_key=data["step_key"]).first():
            db.session.add(Prompt(updated_by=superadmin.id, **data))
            created += 1

    db.session.commit()
    logger.info(f"Seeding completed: {created} prompts created")
    return {"company_id": company.id, "superadmin_id": superadmin.id, "prompts_created": created}


def register_commands(app):
    @app.cli.command("seed")
    def seed_command():
        """Create tables, the storage bucket and the initial data."""
        db.create_all()
        get_storage().ensure_bucket()
        result = seed_initial_data()
        click.echo(f"Seeded: {result}")

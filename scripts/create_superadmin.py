# create_superadmin.py
import os
import sys

from dotenv import load_dotenv

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lyz import create_app
from lyz.models import db
from lyz.seed import seed_initial_data

# Cargar variables de entorno
load_dotenv()


def create_superadmin():
    print("🔍 Leyendo variables de entorno...")

    email = os.getenv("SUPERADMIN_EMAIL")
    password = os.getenv("SUPERADMIN_PASSWORD")
    name = os.getenv("SUPERADMIN_NAME")

    if not email or not password:
        print("❌ ERROR: define SUPERADMIN_EMAIL y SUPERADMIN_PASSWORD en .env")
        return

    app = create_app()
    with app.app_context():
        try:
            db.create_all()
            result = seed_initial_data(email=email, password=password, name=name)
        except Exception as e:
            print(f"❌ Error con la base de datos: {e}")
            db.session.rollback()
            return

    print(f"✅ Empresa por defecto: {result['company_id']}")
    print(f"✅ Superadmin: {email} (id {result['superadmin_id']})")
    print(f"✅ Prompts creados: {result['prompts_created']}")
    print("\n🎉 Proceso completado!")


if __name__ == "__main__":
    create_superadmin()

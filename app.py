from lyz import create_app

app = create_app()

if __name__ == "__main__":
    print("🚀 Starting Lyz API...")
    print("📋 Available surfaces:")
    print("   - GET  /health")
    print("   - /api/auth   (validate-email, register, login, refresh)")
    print("   - /api/plans  (intake wizard, generation, export)")
    print("   - /api/admin  (companies, users, prompts, token usage)")
    app.run(host="0.0.0.0", port=5000)

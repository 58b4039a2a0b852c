from forge_server.main import app

app()

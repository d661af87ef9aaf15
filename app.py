"""
Lecture Assistant HTTP server

Run with ``python app.py`` or any WSGI server pointed at ``app:app``.
"""
from lecture_assistant.config import SERVER_SETTINGS
from lecture_assistant.web import create_app

app = create_app()


if __name__ == "__main__":
    app.run(host=SERVER_SETTINGS["host"], port=SERVER_SETTINGS["port"])

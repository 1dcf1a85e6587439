from fastapi import FastAPI, Header, HTTPException
from pathlib import Path
import json
import os

app = FastAPI(title="Mock Identity Server", version="1.0.0")
# Support both local development and Docker
SESSIONS_FILE = Path(os.environ.get("MOCK_SESSIONS_FILE", Path(__file__).resolve().parent / "sessions.json"))

@app.get("/health")
def health(): return {"status": "ok"}

@app.get("/sessions/me")
def whoami(authorization: str = Header(...)):
    scheme, _, token = authorization.partition(" ")
    sessions = json.loads(SESSIONS_FILE.read_text())
    if scheme.lower() != "bearer" or token not in sessions:
        raise HTTPException(status_code=401, detail="invalid token")
    return {"user_id": sessions[token]}

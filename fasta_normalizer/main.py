from fastapi import FastAPI, UploadFile, File, HTTPException
from .models import NormalizeResponse, HealthResponse
from .normalize import normalize_fasta_bytes
from .rules import FASTA_EXTENSIONS

app = FastAPI(
    title="fasta-normalizer",
    description="Deterministic FASTA normalization and re-wrapping for automation pipelines",
    version="0.1.0",
)

@app.get("/health", response_model=HealthResponse)
def health():
    return {"ok": True}

@app.post("/normalize", response_model=NormalizeResponse)
async def normalize_fasta(file: UploadFile = File(...)):
    if not (file.filename or "").lower().endswith(FASTA_EXTENSIONS):
        raise HTTPException(status_code=422, detail="Only FASTA files are supported")

    raw = await file.read()
    return normalize_fasta_bytes(raw)

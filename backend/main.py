"""
FastAPI backend service for bank statement parsing.
"""
from fastapi import FastAPI, File, UploadFile, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
import tempfile
import shutil
from pathlib import Path
import logging

from statement_parser import (
    PatternRegistry,
    StatementParseError,
    UnknownPattern,
    detect_pattern,
    parse_statement,
    to_csv,
)

app = FastAPI(title="Statement Importer PDF Parser", version="1.0.0")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:4200", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def _save_upload(file: UploadFile) -> Path:
    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    with tempfile.NamedTemporaryFile(delete=False, suffix='.pdf') as tmp_file:
        tmp_path = Path(tmp_file.name)
        try:
            shutil.copyfileobj(file.file, tmp_file)
        except Exception:
            tmp_file.close()
            tmp_path.unlink(missing_ok=True)
            raise
    return tmp_path


def _parse_upload(tmp_path: Path, filename: str, pattern: str):
    if pattern == "auto":
        detected = detect_pattern(tmp_path)
        if not detected:
            raise HTTPException(status_code=400, detail="Could not detect a bank pattern for this PDF")
        pattern = detected
        logger.info(f"Detected pattern: {pattern}")

    logger.info(f"Processing PDF: {filename} with pattern {pattern}")
    try:
        return parse_statement(tmp_path, pattern)
    except UnknownPattern as e:
        raise HTTPException(status_code=400, detail=f"Unknown pattern: {pattern}") from e
    except StatementParseError as e:
        logger.warning(f"Parse failed for {filename}: {e.kind} ({e.detail})")
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "Statement Importer PDF Parser API", "status": "healthy"}


@app.get("/patterns")
async def list_patterns():
    """List all registered bank patterns."""
    registry = PatternRegistry()
    patterns = []
    for pattern_id in registry.list_patterns():
        config = registry.get_pattern(pattern_id).config
        patterns.append({"id": pattern_id, "name": config.name, "bank": config.bank})
    return JSONResponse(content={"success": True, "patterns": patterns})


@app.post("/parse")
async def parse_pdf(file: UploadFile = File(...), pattern: str = "activobank"):
    """
    Parse a PDF statement and return its transactions.

    Args:
        file: Uploaded PDF file
        pattern: Bank pattern ID, or "auto" to detect it

    Returns:
        Parsed transactions as JSON
    """
    tmp_path = _save_upload(file)
    try:
        result = _parse_upload(tmp_path, file.filename, pattern)
        data = result.model_dump()

        logger.info(f"Successfully parsed PDF: {len(data['transactions'])} transactions found")

        return JSONResponse(content={
            "success": True,
            "data": data,
            "pattern_used": result.pattern_id,
            "summary": {
                "transactions_count": len(data['transactions'])
            }
        })
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


@app.post("/export")
async def export_csv(file: UploadFile = File(...), pattern: str = "activobank"):
    """Parse a PDF statement and download its transactions as CSV."""
    tmp_path = _save_upload(file)
    try:
        result = _parse_upload(tmp_path, file.filename, pattern)
        filename = Path(file.filename).stem + ".csv"
        return Response(
            content=to_csv(result.transactions),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'}
        )
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)

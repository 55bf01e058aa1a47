#!/usr/bin/env python3
"""
Mimic FastAPI Server
Provides REST API for contract inspection and fake generation
"""
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from mimic import __version__
from mimic.core.config import SERVER_HOST, SERVER_PORT
from mimic.core.errors import MimicError
from mimic.log import configure_logging, get_logger
from mimic.server.client import MimicClient

logger = get_logger(__name__)


# ============================================================================
# Request/Response Models
# ============================================================================

class LocateRequest(BaseModel):
    source_path: str
    contract_name: str


class LocateResponse(BaseModel):
    success: bool
    contract: Optional[dict] = None
    error: Optional[str] = None


class GenerateFakeRequest(BaseModel):
    source_path: str
    contract_name: str
    fake_name: Optional[str] = ""
    package_name: Optional[str] = ""


class GenerateInterfaceRequest(BaseModel):
    source_dir: str
    interface_name: Optional[str] = ""
    package_name: Optional[str] = ""


class GenerateResponse(BaseModel):
    success: bool
    generated: Optional[dict] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    endpoints: List[str]


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="Mimic API",
    description="Call-recording fake generation for Python contracts",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

mimic_client: Optional[MimicClient] = None


def get_mimic_client() -> MimicClient:
    """Get or create mimic client instance"""
    global mimic_client
    if mimic_client is None:
        mimic_client = MimicClient()
    return mimic_client


def describe_error(error: Exception) -> str:
    """Render an error as `Kind: message`"""
    kind = error.kind if isinstance(error, MimicError) else type(error).__name__
    return f"{kind}: {error}"


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/", response_model=HealthResponse)
async def health():
    """Health check endpoint"""
    return {
        "status": "ok",
        "version": __version__,
        "endpoints": ["/api/locate", "/api/generate-fake", "/api/generate-interface"]
    }


@app.post("/api/locate", response_model=LocateResponse)
def locate(request: LocateRequest):
    """
    Locate a contract and return its flattened method set.

    Example:
        POST /api/locate
        {
            "source_path": "/path/to/package",
            "contract_name": "Store"
        }
    """
    try:
        info = get_mimic_client().locate_contract(request.source_path, request.contract_name)
        return {
            "success": True,
            "contract": info.to_dict()
        }

    except (MimicError, SyntaxError, ValueError) as e:
        logger.info("Locate failed: %s", e)
        return {
            "success": False,
            "error": describe_error(e)
        }


@app.post("/api/generate-fake", response_model=GenerateResponse)
def generate_fake(request: GenerateFakeRequest):
    """
    Generate a fake for a contract.

    Example:
        POST /api/generate-fake
        {
            "source_path": "/path/to/package",
            "contract_name": "Store",
            "fake_name": "FakeStore"
        }
    """
    try:
        generated = get_mimic_client().generate_fake(
            source_path=request.source_path,
            contract_name=request.contract_name,
            fake_name=request.fake_name or "",
            package_name=request.package_name or ""
        )
        return {
            "success": True,
            "generated": generated.to_dict()
        }

    except (MimicError, SyntaxError, ValueError) as e:
        logger.info("Fake generation failed: %s", e)
        return {
            "success": False,
            "error": describe_error(e)
        }


@app.post("/api/generate-interface", response_model=GenerateResponse)
def generate_interface(request: GenerateInterfaceRequest):
    """
    Derive a Protocol from the exported functions of a directory.

    Example:
        POST /api/generate-interface
        {
            "source_dir": "/path/to/package",
            "interface_name": "Package"
        }
    """
    try:
        generated = get_mimic_client().generate_interface(
            source_dir=request.source_dir,
            interface_name=request.interface_name or "",
            package_name=request.package_name or ""
        )
        return {
            "success": True,
            "generated": generated.to_dict()
        }

    except (MimicError, SyntaxError, ValueError) as e:
        logger.info("Interface generation failed: %s", e)
        return {
            "success": False,
            "error": describe_error(e)
        }


# ============================================================================
# Run Server
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    configure_logging()
    print("=" * 60)
    print("Mimic API Server")
    print("=" * 60)
    print(f"Starting server on http://{SERVER_HOST}:{SERVER_PORT}")
    print(f"API docs: http://{SERVER_HOST}:{SERVER_PORT}/docs")
    print("=" * 60)

    uvicorn.run(app, host=SERVER_HOST, port=SERVER_PORT)

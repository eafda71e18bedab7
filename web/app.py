"""FastAPI web adapter for the CHIP-8 virtual machine."""

import base64
import binascii
import logging
from typing import Optional
from pathlib import Path
import sys
import os

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, Field

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from chip8 import run_rom, RunOptions, KeyEvent, TimingConfig
from chip8.decoder import OPCODE_FORMS
from chip8.timing import STEP_COUNT

logger = logging.getLogger(__name__)


# Constants
MAX_ROM_SIZE = 4096 - 0x200
STATIC_DIR = Path(__file__).parent.parent / "static"


# Request/Response models
class KeyEventModel(BaseModel):
    step: int = Field(ge=1)
    key: int = Field(ge=0, le=15)
    down: bool = True


class RunOptionsModel(BaseModel):
    max_steps: int = Field(default=1000, ge=1, le=1000000)
    seed: Optional[int] = None
    schedule: str = Field(default=STEP_COUNT, pattern="^(step-count|elapsed)$")
    key_events: list[KeyEventModel] = Field(default_factory=list)
    trace: bool = False
    trace_registers: bool = False


class RunRequest(BaseModel):
    rom: str  # base64
    options: Optional[RunOptionsModel] = None


class RunResponse(BaseModel):
    status: str
    steps_executed: int
    final_state: dict
    display: list[str]
    trace: list[dict]
    error: Optional[dict] = None


class OpcodeForm(BaseModel):
    name: str
    pattern: str
    mnemonic: str


# Create FastAPI app
app = FastAPI(
    title="CHIP-8 Virtual Machine",
    description="Web API for running CHIP-8 ROMs headlessly",
    version="0.1.0",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.post("/api/run", response_model=RunResponse)
async def run_code(request: RunRequest):
    """Execute a CHIP-8 ROM.

    Args:
        request: Base64-encoded ROM and execution options

    Returns:
        Execution result with final state, display rows and trace
    """
    try:
        rom = base64.b64decode(request.rom, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=400, detail="ROM is not valid base64")

    # Validate ROM size
    if len(rom) > MAX_ROM_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"ROM size exceeds limit of {MAX_ROM_SIZE} bytes",
        )

    opts = request.options or RunOptionsModel()

    run_opts = RunOptions(
        max_steps=opts.max_steps,
        seed=opts.seed,
        timing=TimingConfig(schedule=opts.schedule),
        key_events=[KeyEvent(step=e.step, key=e.key, down=e.down) for e in opts.key_events],
        trace=opts.trace,
        trace_registers=opts.trace_registers,
    )

    logger.info("Run request: %d-byte ROM, %d steps", len(rom), opts.max_steps)
    result = run_rom(rom, options=run_opts)

    return result.to_dict()


@app.get("/api/opcodes", response_model=list[OpcodeForm])
async def list_opcodes():
    """List every instruction form the decoder accepts."""
    return [
        OpcodeForm(name=op.name, pattern=pattern, mnemonic=mnemonic)
        for op, (pattern, mnemonic) in OPCODE_FORMS.items()
    ]


# Mount static files AFTER API routes to prevent shadowing
if STATIC_DIR.exists():
    app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)

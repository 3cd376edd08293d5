# printdesk/main.py

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uvicorn
from dotenv import load_dotenv
from contextlib import asynccontextmanager

from printdesk.utils.log import Log
from printdesk.utils.database import init_db
from printdesk.utils.errors import PrintDeskError
from printdesk.services.aggregator import ContextLoader
from printdesk.middleware.db_middleware import DBSessionMiddleware

import os
import multiprocessing

# --- environment ---
load_dotenv()

# --- sync logger for early startup ---
boot_log = Log()
if os.environ.get("RUN_MAIN") == "true" or multiprocessing.current_process().name == "MainProcess":
    boot_log.log_info_sync(target="startup", message="main.py imports done")

# ────────────── Lifespan ──────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    boot_log.log_info_sync(target="startup", message="lifespan: startup")

    try:
        admin_created = await init_db()
    except Exception as e:
        boot_log.log_error_sync(target="startup", message=f"Database init failed: {e}")
        raise
    boot_log.log_info_sync(target="startup", message="Database ready", data={"admin_created": admin_created})

    # one in-flight order-context load per staff user
    app.state.context_loader = ContextLoader()

    app.state.log = Log()
    await app.state.log.log_info(target="startup", message="Async Log ready")

    yield

    # shutdown
    await app.state.log.log_info(target="shutdown", message="Stopping application")
    await app.state.log.shutdown()
    boot_log.log_info_sync(target="shutdown", message="Log closed")

# ────────────── FastAPI app ──────────────
app = FastAPI(title="PrintDesk API", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# request.state.db for the services
app.add_middleware(DBSessionMiddleware)


@app.exception_handler(PrintDeskError)
async def printdesk_error_handler(request: Request, exc: PrintDeskError):
    log = getattr(request.app.state, "log", None)
    if log:
        target = "remote" if exc.status_code >= 500 else "request"
        await log.log_warning(target, exc.message, {"path": request.url.path, "status": exc.status_code})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
def read_root():
    return {"message": "PrintDesk API"}

# ────────────── Routers ──────────────
from printdesk.routes import auth, customer, order, payment, template, finance, whatsapp, chat

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(customer.router, prefix="/customer", tags=["customer"])
app.include_router(order.router, prefix="/order", tags=["order"])
app.include_router(payment.router, prefix="/payment", tags=["payment"])
app.include_router(template.router, prefix="/template", tags=["template"])
app.include_router(finance.router, prefix="/finance", tags=["finance"])
app.include_router(whatsapp.router, prefix="/whatsapp", tags=["whatsapp"])
app.include_router(chat.router, prefix="/functions", tags=["agent"])

# ────────────── uvicorn ──────────────
if __name__ == "__main__":
    boot_log.log_info_sync(target="startup", message="Starting uvicorn")
    uvicorn.run(
        "printdesk.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
        reload=True
    )

# Main Router - imagemeta/api/v1/routes/router.py
from fastapi import APIRouter
from imagemeta.api.v1.routes.usage.usage import router as usage_router
from imagemeta.api.v1.routes.billing.billing import router as billing_router

router = APIRouter()

# Ledger routes (identity is optional on ingest; clear-usage checks admin itself)
router.include_router(usage_router)

# Account routes (bearer token required)
router.include_router(billing_router)

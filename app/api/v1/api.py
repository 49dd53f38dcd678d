"""API router aggregation"""
from fastapi import APIRouter
from app.api.v1.endpoints import auth_endpoints, otp_endpoints, user_endpoints, user_task_endpoints
from app.api.v1.endpoints import lead_endpoints, coach_endpoints, upload_endpoints
from app.api.v1.endpoints import task_endpoints, document_endpoints

api_router = APIRouter()

api_router.include_router(auth_endpoints.router,      prefix="/auth",       tags=["Authentication"])
api_router.include_router(otp_endpoints.router,       prefix="/otp",        tags=["OTP"])
api_router.include_router(user_endpoints.router,      prefix="/users",      tags=["Users"])
api_router.include_router(user_task_endpoints.router, prefix="/user-tasks", tags=["User Tasks"])
api_router.include_router(lead_endpoints.router,      prefix="/leads",      tags=["Leads"])
api_router.include_router(coach_endpoints.router,     prefix="/coaches",    tags=["Coaches"])
api_router.include_router(upload_endpoints.router,    prefix="/upload",     tags=["Upload"])
api_router.include_router(task_endpoints.router,      prefix="/tasks",      tags=["Tasks"])
api_router.include_router(document_endpoints.router,  prefix="/documents",  tags=["Documents"])

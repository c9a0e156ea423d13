from fastapi import APIRouter

from app.api.allocations import allocations_router
from app.api.audit import audit_router
from app.api.auth import auth_router
from app.api.complaints import complaints_router
from app.api.leaves import leaves_router
from app.api.messages import messages_router
from app.api.reimbursements import reimbursements_router
from app.api.teams import teams_router
from app.api.users import users_router
from app.api.ws import ws_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(users_router)
api_router.include_router(teams_router)
api_router.include_router(leaves_router)
api_router.include_router(allocations_router)
api_router.include_router(complaints_router)
api_router.include_router(reimbursements_router)
api_router.include_router(messages_router)
api_router.include_router(audit_router)
api_router.include_router(ws_router)

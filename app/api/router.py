from fastapi import APIRouter
from app.api.routes import auth_router, file_router, system_router

api_router = APIRouter()

# 将所有路由配置定义在一个列表中
# 每个元素都是一个包含 router 和 tags 的字典；本服务的路径都在根下
routers_to_include = [
    {"router": system_router.router, "tags": ["system"]},
    {"router": auth_router.router, "tags": ["auth"]},
    {"router": file_router.router, "tags": ["files"]},
]

for route_config in routers_to_include:
    api_router.include_router(**route_config)

"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import LoggingMiddleware, RequestIDMiddleware
from api.routes import orders as orders_routes
from api.routes import payments as payments_routes
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import configure_logging, get_logger
from core.response import success_response
from infrastructure.database import create_tables, engine
from infrastructure.external.payments import get_payment_provider
from infrastructure.outbox.processor import OutboxProcessor
from infrastructure.outbox.publisher import LoggingEventPublisher
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


# 初始化日志：在入口处显式配置
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时创建数据库表（仅开发环境）。生产应使用 Alembic 迁移
    if settings.DEBUG:
        await create_tables()
        logger.info("database_initialized", message="Database tables created (development)")
    else:
        logger.info(
            "database_migrations_required",
            message="No auto-create in production, use Alembic migrations (alembic upgrade head)",
        )

    # 支付提供方：进程级单例，熔断器状态跨请求共享
    app.state.payment_provider = get_payment_provider()
    logger.info("payment_provider_initialized", kind=settings.provider.kind)

    processor = None
    if settings.outbox.enabled:
        processor = OutboxProcessor(
            SQLAlchemyUnitOfWork,
            LoggingEventPublisher(),
            interval=settings.outbox.interval,
            batch_size=settings.outbox.batch_size,
            max_retries=settings.outbox.max_retries,
        )
        processor.start()
    app.state.outbox_processor = processor

    yield

    # 关闭时的清理工作
    if processor is not None:
        await processor.stop()
    inner = getattr(app.state.payment_provider, "inner", None)
    aclose = getattr(inner, "aclose", None)
    if callable(aclose):
        await aclose()
    await engine.dispose()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="订单支付服务：支付确认、幂等与 Outbox 事件发布",
)

# 添加中间件（注意顺序：从下往上执行）
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册全局异常处理器
register_exception_handlers(app)

# 注册路由
app.include_router(orders_routes.router, prefix="/api/v1")
app.include_router(payments_routes.router, prefix="/api/v1")


# 健康检查
@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    processor = getattr(app.state, "outbox_processor", None)
    return success_response(
        data={
            "status": "healthy",
            "outbox_processor": "running" if processor is not None and processor.running else "stopped",
        },
        message="OK",
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info",
    )

#!/usr/bin/env python
"""
HireBridge 后端启动脚本

用法:
    python run.py                    # 默认启动 (127.0.0.1:8000)
    python run.py -p 8080            # 指定端口
    python run.py --host 0.0.0.0     # 允许外网访问
    python run.py --reload           # 开启热重载
"""
import argparse
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).parent
sys.path.insert(0, str(ROOT_DIR))


def parse_args():
    """解析命令行参数"""
    parser = argparse.ArgumentParser(description="HireBridge 后端启动脚本")
    parser.add_argument("-p", "--port", type=int, default=8000, help="服务端口 (默认: 8000)")
    parser.add_argument("--host", type=str, default="127.0.0.1", help="服务地址 (默认: 127.0.0.1)")
    parser.add_argument("--reload", action="store_true", help="开启热重载 (开发模式)")
    parser.add_argument("--workers", type=int, default=1, help="工作进程数 (默认: 1)")
    return parser.parse_args()


def ensure_data_dir():
    """默认 SQLite 数据库放在 data/ 下，启动前确保目录存在"""
    data_dir = ROOT_DIR / "data"
    if not data_dir.exists():
        data_dir.mkdir(parents=True)
        print(f"数据目录已创建: {data_dir}")


def main():
    """主函数"""
    args = parse_args()
    ensure_data_dir()

    print(f"启动 HireBridge: http://{args.host}:{args.port}")
    print(f"热重载: {'开启' if args.reload else '关闭'}，工作进程: {args.workers}")

    import uvicorn
    try:
        uvicorn.run(
            "app.main:app",
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=args.workers if not args.reload else 1,
            log_level="info",
        )
    except KeyboardInterrupt:
        print("服务已停止")


if __name__ == "__main__":
    main()

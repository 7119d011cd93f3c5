# app/main.py
from app.core.config import settings
from app.factory import create_app

app = create_app(settings)

if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host='0.0.0.0', port=settings.PORT)

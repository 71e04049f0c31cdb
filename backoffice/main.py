from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from backoffice.config import settings
from backoffice.logs import configure_logging
from backoffice.routers import console
from backoffice.security.csrf import install_csrf_cookie_middleware
from backoffice.security.headers import install_security_headers
from backoffice.security.sessions import install_auth_session_middleware

configure_logging(settings.log_level)

app = FastAPI(title='Supply Back-Office Console')

TEMPLATE_DIR = Path(__file__).resolve().parent / 'templates'
app.state.templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


def _csrf_token(request: Request) -> str:
    return getattr(request.state, 'csrf_token', '')


app.state.templates.env.globals['csrf_token'] = _csrf_token

# registered last runs first: the session gate sees the request before CSRF does
install_security_headers(app)
install_csrf_cookie_middleware(app)
install_auth_session_middleware(app)

app.include_router(console.router)


@app.get('/')
def root():
    return RedirectResponse('/console/items', status_code=303)


@app.get('/login')
def login_page(request: Request):
    return request.app.state.templates.TemplateResponse(
        request,
        'login.html',
        {
            'auth_login_url': f'{settings.auth_base_url_normalized}/login',
        },
    )


@app.get('/healthz', response_class=PlainTextResponse)
def healthz() -> str:
    return 'ok'


@app.get('/robots.txt', response_class=PlainTextResponse)
def robots_txt() -> str:
    return 'User-agent: *\nDisallow: /\n'

import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13", "3.14"]

# psycopg2 ships a C extension built per interpreter.
_C_EXT_PACKAGES = ["psycopg2-binary"]


def _install(session: nox.Session) -> None:
    """Install the routing package in editable mode with its test extra."""
    session.install("-e", ".[test]")
    session.install("--force-reinstall", "--no-cache-dir", *_C_EXT_PACKAGES)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run the whole routing suite."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Aggregates, state machine, precedence and rendering; memory providers only."""
    _install(session)
    session.run("pytest", "-m", "domain", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_api(session: nox.Session) -> None:
    """HTTP surface and projections."""
    _install(session)
    session.run("pytest", "-m", "integration", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_bdd(session: nox.Session) -> None:
    """Routing and delivery scenarios written as Gherkin features."""
    _install(session)
    session.run("pytest", "-m", "bdd", *session.posargs)

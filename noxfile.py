import nox

nox.options.reuse_existing_virtualenvs = True


@nox.session
def test(session):
    """Run the test suite"""
    session.install(".[test]")
    session.run("pytest", *session.posargs)


@nox.session
def scan(session):
    """Run treehash on a directory given as a positional argument"""
    session.install(".")
    session.run("treehash", *session.posargs)

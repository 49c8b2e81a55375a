"""Fluent-style helpers for wiring handlers.

* ``RouteBuilder`` registers HTTP routes on a Flask Blueprint.
* ``EventBuilder`` registers Socket.IO event handlers on a Flask-SocketIO
  server, mirroring the same chain so both kinds of handlers read alike.
"""


class RouteBuilder:
    """Route builder with a chainable API."""
    def __init__(self, blueprint):
        """
        Initialize the builder with a Flask Blueprint.

        Parameters
        ----------
        blueprint : flask.Blueprint
            The Flask Blueprint where the route will be registered.
        """
        self.bp = blueprint
        self._rule = None
        self._endpoint = None
        self._methods = []
        self._handler = None

    def route(self, rule, endpoint=None):
        """
        Set the route path and optional endpoint name.

        Parameters
        ----------
        rule : str
            The URL rule (e.g., "/rooms/<code>").
        endpoint : str, optional
            Custom endpoint name. Default to the handler function name.
        """
        self._rule = rule
        self._endpoint = endpoint
        return self

    def methods(self, *methods):
        """
        Define allowed HTTP methods for the route.

        Parameters
        ----------
        *methods : str
            One or more HTTP methods (e.g., "GET", "POST").
        """
        self._methods = methods
        return self

    def handler(self, func):
        """
        Set the handler function for the route.

        Parameters
        ----------
        func : callable
            The route handler function.
        """
        self._handler = func
        return self

    def build(self):
        """
        Finalize and register the route with the Blueprint.

        Returns
        -------
        RouteBuilder
            Self, after the route is added.
        """
        self.bp.add_url_rule(
            self._rule,
            endpoint=self._endpoint or self._handler.__name__,
            view_func=self._handler,
            methods=self._methods
        )
        return self


class EventBuilder:
    """Socket event builder with the same chainable API as ``RouteBuilder``."""
    def __init__(self, socketio, namespace=None):
        """
        Initialize the builder with a Flask-SocketIO server.

        Parameters
        ----------
        socketio : flask_socketio.SocketIO
            Server the handler is attached to.
        namespace : str, optional
            Socket.IO namespace; the default namespace when omitted.
        """
        self.socketio = socketio
        self._namespace = namespace
        self._event = None
        self._handler = None

    def event(self, name):
        """
        Set the event name (e.g., "buzz").

        Parameters
        ----------
        name : str
            Event name as emitted by the client.
        """
        self._event = name
        return self

    def handler(self, func):
        """
        Set the handler function for the event.

        Parameters
        ----------
        func : callable
            Called with the event payload (if any); ``request.sid``
            identifies the sender inside it.
        """
        self._handler = func
        return self

    def build(self):
        """
        Finalize and register the handler with the server.

        Returns
        -------
        EventBuilder
            Self, after the handler is registered.
        """
        self.socketio.on_event(self._event, self._handler, namespace=self._namespace)
        return self

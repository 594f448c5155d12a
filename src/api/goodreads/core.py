"""
Goodreads Core Service - public endpoint facade for the Goodreads API.

Every endpoint is a coroutine that validates its required arguments (and the
OAuth state where user authorization is needed), builds a RequestDescriptor and
dispatches it through Transport + parser.execute. Nothing is cached or retried.
"""

from collections.abc import Mapping
from typing import Any

from api.goodreads.auth import OAuthSession, SignerFactory, goodreads_auth
from api.goodreads.errors import CredentialsError, MissingParameterError
from api.goodreads.models import GOODREADS_BASE_URL, GoodreadsCredentials, OAuthState
from api.goodreads.oauth import OAuth1Signer
from api.goodreads.parser import execute
from api.goodreads.request import RequestDescriptor
from api.goodreads.transport import Transport
from utils.get_logger import get_logger

logger = get_logger(__name__)

XML_FORMAT = "xml"


class GoodreadsService:
    """
    Goodreads API client.

    Read-only lookups only need the developer key. Endpoints that act on
    behalf of a user need a completed OAuth handshake:

        service = GoodreadsService({"key": KEY, "secret": SECRET}, callback_url)
        url = await service.get_request_token()   # send the user here
        await service.get_access_token()          # after the user authorized
        await service.add_book_to_shelf("50", "to-read")
    """

    def __init__(
        self,
        credentials: Mapping[str, Any] | GoodreadsCredentials | None,
        callback_url: str | None = None,
        base_url: str = GOODREADS_BASE_URL,
        transport: Transport | None = None,
        signer_factory: SignerFactory = OAuth1Signer,
    ):
        """Initialize the client.

        Args:
            credentials: Mapping or GoodreadsCredentials with ``key`` and ``secret``
            callback_url: When given, OAuth is initialised immediately
            base_url: Service root, overridable for tests
            transport: Transport instance, a fresh one when omitted
            signer_factory: Factory for the OAuth signer capability

        Raises:
            CredentialsError: If the key or secret is missing
        """
        creds = self._coerce_credentials(credentials)

        self.base_url = base_url.rstrip("/")
        self._key = creds.key
        self.session = OAuthSession(
            creds.key,
            creds.secret,
            callback_url=callback_url,
            base_url=self.base_url,
            signer_factory=signer_factory,
        )
        self.transport = transport or Transport()

        if callback_url:
            self.session.init_oauth(callback_url)

    @classmethod
    def from_env(cls, callback_url: str | None = None, **kwargs: Any) -> "GoodreadsService":
        """Build a client from GOODREADS_API_KEY/GOODREADS_API_SECRET (env file, env or secrets)."""
        credentials = goodreads_auth.get_credentials()
        callback_url = callback_url or goodreads_auth.callback_url
        return cls(credentials, callback_url, **kwargs)

    @staticmethod
    def _coerce_credentials(
        credentials: Mapping[str, Any] | GoodreadsCredentials | None,
    ) -> GoodreadsCredentials:
        if isinstance(credentials, GoodreadsCredentials):
            return credentials
        if not credentials or not credentials.get("key") or not credentials.get("secret"):
            raise CredentialsError("Please pass your API key and secret.", "GoodreadsService()")
        return GoodreadsCredentials(key=credentials["key"], secret=credentials["secret"])

    def __repr__(self) -> str:
        return f"GoodreadsService(base_url={self.base_url!r}, session={self.session!r})"

    # ------------------------------------------------------------------
    # OAuth handshake
    # ------------------------------------------------------------------

    def init_oauth(self, callback_url: str | None = None) -> None:
        self.session.init_oauth(callback_url)

    async def get_request_token(self) -> str:
        """Obtain a request token and return the URL the user must visit."""
        return await self.session.get_request_token()

    async def get_access_token(self, verifier: str | None = None) -> None:
        """Trade the authorized request token for an access token."""
        await self.session.get_access_token(verifier)

    def set_access_token(self, token: str, secret: str) -> None:
        self.session.set_access_token(token, secret)

    @property
    def oauth_state(self) -> OAuthState:
        return self.session.state

    @property
    def is_authenticated(self) -> bool:
        return self.session.authenticated

    # ------------------------------------------------------------------
    # Request helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require(function_name: str, **params: Any) -> None:
        for name, value in params.items():
            if value is None or value == "":
                raise MissingParameterError(function_name, name)

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def _get(
        self,
        function_name: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        response_key: str = "",
    ) -> Any:
        req = (
            RequestDescriptor.builder()
            .with_path(self._url(path))
            .with_query_params(params or {})
            .with_response_key(response_key)
            .build()
        )
        return await execute(self.transport.get, req, function_name)

    async def _oauth_request(
        self,
        method: str,
        function_name: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        response_key: str = "",
    ) -> Any:
        self.session.require_authenticated(function_name)
        logger.debug(f"{function_name} dispatching signed {method} {path}")

        transport_fns = {
            "GET": self.transport.oauth_get,
            "POST": self.transport.oauth_post,
            "DELETE": self.transport.oauth_delete,
        }
        req = (
            RequestDescriptor.builder()
            .with_path(self._url(path))
            .with_query_params(params or {})
            .with_oauth(self.session.auth_options())
            .with_response_key(response_key)
            .build()
        )
        return await execute(transport_fns[method], req, function_name)

    # ------------------------------------------------------------------
    # Authors and series
    # ------------------------------------------------------------------

    async def follow_author(self, author_id: str) -> Any:
        """Follow an author. Requires OAuth."""
        fn_name = "follow_author()"
        self._require(fn_name, author_id=author_id)
        return await self._oauth_request(
            "POST", fn_name, "/author_followings", {"id": author_id, "format": XML_FORMAT}
        )

    async def unfollow_author(self, author_id: str) -> Any:
        """Stop following an author. Requires OAuth."""
        fn_name = "unfollow_author()"
        self._require(fn_name, author_id=author_id)
        return await self._oauth_request(
            "DELETE", fn_name, f"/author_followings/{author_id}", {"format": XML_FORMAT}
        )

    async def show_following(self, following_id: str) -> Any:
        """Show an author following. Requires OAuth."""
        fn_name = "show_following()"
        self._require(fn_name, following_id=following_id)
        return await self._oauth_request(
            "GET", fn_name, f"/author_followings/{following_id}", {"format": XML_FORMAT}
        )

    async def get_books_by_author(self, author_id: str, page: int | None = None) -> Any:
        """Paginated list of an author's books.

        Args:
            author_id: Goodreads author id
            page: Optional 1-based page of results

        Returns:
            The ``author`` element, whose ``books`` key holds the page of books
        """
        fn_name = "get_books_by_author()"
        self._require(fn_name, author_id=author_id)
        params = {"format": XML_FORMAT, "key": self._key, "page": page}
        return await self._get(fn_name, f"/author/list/{author_id}", params, "author")

    async def get_author_info(self, author_id: str) -> Any:
        """Info about an author (name, link, fans count, top books)."""
        fn_name = "get_author_info()"
        self._require(fn_name, author_id=author_id)
        params = {"key": self._key, "format": XML_FORMAT}
        return await self._get(fn_name, f"/author/show/{author_id}", params, "author")

    async def get_all_series_by_author(self, author_id: str) -> Any:
        fn_name = "get_all_series_by_author()"
        self._require(fn_name, author_id=author_id)
        params = {"id": author_id, "key": self._key, "format": XML_FORMAT}
        return await self._get(fn_name, "/series/list", params)

    async def get_series(self, series_id: str) -> Any:
        fn_name = "get_series()"
        self._require(fn_name, series_id=series_id)
        params = {"key": self._key, "format": XML_FORMAT}
        return await self._get(fn_name, f"/series/show/{series_id}", params, "series")

    async def search_authors(self, author_name: str) -> Any:
        """Look up an author id by name."""
        fn_name = "search_authors()"
        self._require(fn_name, author_name=author_name)
        params = {"key": self._key}
        return await self._get(fn_name, f"/api/author_url/{author_name}", params, "author")

    # ------------------------------------------------------------------
    # Books
    # ------------------------------------------------------------------

    async def get_book(self, book_id: str) -> Any:
        fn_name = "get_book()"
        self._require(fn_name, book_id=book_id)
        return await self._get(fn_name, f"/book/show/{book_id}.xml", {"key": self._key}, "book")

    async def get_book_by_isbn(self, isbn: str) -> Any:
        fn_name = "get_book_by_isbn()"
        self._require(fn_name, isbn=isbn)
        params = {"key": self._key, "format": XML_FORMAT}
        return await self._get(fn_name, f"/book/isbn/{isbn}", params, "book")

    async def get_book_by_title(self, title: str, options: Mapping[str, Any] | None = None) -> Any:
        """Best match for a title.

        Args:
            title: Book title
            options: Optional filters, e.g. ``{"author": "Rowling", "rating": 3}``
        """
        fn_name = "get_book_by_title()"
        self._require(fn_name, title=title)
        params = {"key": self._key, "title": title, **(options or {})}
        return await self._get(fn_name, "/book/title.xml", params, "book")

    async def search_books(self, query: str, options: Mapping[str, Any] | None = None) -> Any:
        """Search books by title, author or ISBN.

        Args:
            query: Search string
            options: Optional ``page`` and ``search[field]`` ("title", "author" or "all")

        Returns:
            The ``search`` element with ``results`` and paging counters
        """
        fn_name = "search_books()"
        self._require(fn_name, query=query)
        params = {"key": self._key, "q": query, **(options or {})}
        return await self._get(fn_name, "/search/index.xml", params, "search")

    # ------------------------------------------------------------------
    # Users and social graph
    # ------------------------------------------------------------------

    async def get_user_info(self, user_id: str) -> Any:
        fn_name = "get_user_info()"
        self._require(fn_name, user_id=user_id)
        return await self._get(fn_name, f"/user/show/{user_id}.xml", {"key": self._key}, "user")

    async def get_user_followings(self, user_id: str) -> Any:
        """People the user is following. Requires OAuth."""
        fn_name = "get_user_followings()"
        self._require(fn_name, user_id=user_id)
        return await self._oauth_request(
            "GET", fn_name, f"/user/{user_id}/following.xml", {"key": self._key}
        )

    async def follow_user(self, user_id: str) -> Any:
        """Follow a user. Requires OAuth."""
        fn_name = "follow_user()"
        self._require(fn_name, user_id=user_id)
        return await self._oauth_request(
            "POST", fn_name, f"/user/{user_id}/followers", {"format": XML_FORMAT}
        )

    async def add_friend(self, user_id: str) -> Any:
        fn_name = "add_friend()"
        self._require(fn_name, user_id=user_id)
        return await self._oauth_request(
            "POST", fn_name, "/friend/add_as_friend.xml", {"id": user_id}
        )

    async def get_friend_requests(self, page: int | None = None) -> Any:
        """Friend requests of the authenticated user. Requires OAuth."""
        fn_name = "get_friend_requests()"
        return await self._oauth_request("GET", fn_name, "/friend/requests.xml", {"page": page})

    async def answer_friend_request(self, request_id: str, response: str) -> Any:
        """Confirm or decline a friend request.

        Args:
            request_id: Friend request id
            response: "Y" to confirm, "N" to decline
        """
        fn_name = "answer_friend_request()"
        self._require(fn_name, request_id=request_id, response=response)
        params = {"id": request_id, "response": response}
        return await self._oauth_request("POST", fn_name, "/friend/confirm_request.xml", params)

    async def answer_friend_recommendation(self, recommendation_id: str, response: str) -> Any:
        """Confirm or decline a friend recommendation ("Y" or "N")."""
        fn_name = "answer_friend_recommendation()"
        self._require(fn_name, recommendation_id=recommendation_id, response=response)
        params = {"id": recommendation_id, "response": response}
        return await self._oauth_request(
            "POST", fn_name, "/friend/confirm_recommendation.xml", params
        )

    async def get_notifications(self, page: int | None = None) -> Any:
        fn_name = "get_notifications()"
        return await self._oauth_request("GET", fn_name, "/notifications.xml", {"page": page})

    async def get_recommendation(self, recommendation_id: str) -> Any:
        fn_name = "get_recommendation()"
        self._require(fn_name, recommendation_id=recommendation_id)
        return await self._oauth_request(
            "GET", fn_name, f"/recommendations/{recommendation_id}", {"format": XML_FORMAT}
        )

    async def create_comment(self, resource_type: str, resource_id: str, comment: str) -> Any:
        """Comment on a resource.

        Args:
            resource_type: Resource kind, e.g. "review", "user_status", "read_status"
            resource_id: Id of the resource
            comment: Comment body
        """
        fn_name = "create_comment()"
        self._require(
            fn_name, resource_type=resource_type, resource_id=resource_id, comment=comment
        )
        params = {
            "type": resource_type,
            "id": resource_id,
            "comment[body]": comment,
            "format": XML_FORMAT,
        }
        return await self._oauth_request("POST", fn_name, "/comment.xml", params)

    async def unlike_resource(self, rating_id: str) -> Any:
        fn_name = "unlike_resource()"
        self._require(fn_name, rating_id=rating_id)
        return await self._oauth_request(
            "DELETE", fn_name, "/rating", {"id": rating_id, "format": XML_FORMAT}
        )

    # ------------------------------------------------------------------
    # Shelves and owned books
    # ------------------------------------------------------------------

    async def get_users_shelves(self, user_id: str) -> Any:
        """A user's shelves, unwrapped to the ``shelves`` element."""
        fn_name = "get_users_shelves()"
        self._require(fn_name, user_id=user_id)
        params = {"user_id": user_id, "key": self._key}
        return await self._get(fn_name, "/shelf/list.xml", params, "shelves")

    async def add_book_to_shelf(self, book_id: str, shelf: str) -> Any:
        """Add a book to one of the authenticated user's shelves. Requires OAuth."""
        fn_name = "add_book_to_shelf()"
        self._require(fn_name, book_id=book_id, shelf=shelf)
        params = {"book_id": book_id, "name": shelf}
        return await self._oauth_request("POST", fn_name, "/shelf/add_to_shelf.xml", params)

    async def add_books_to_shelves(
        self, book_ids: str | list[str], shelves: str | list[str]
    ) -> Any:
        """Add several books to several shelves at once.

        Args:
            book_ids: Book ids, as a list or a comma-separated string
            shelves: Shelf names, as a list or a comma-separated string
        """
        fn_name = "add_books_to_shelves()"
        self._require(fn_name, book_ids=book_ids or None, shelves=shelves or None)
        params = {
            "bookids": book_ids if isinstance(book_ids, str) else ",".join(book_ids),
            "shelves": shelves if isinstance(shelves, str) else ",".join(shelves),
        }
        return await self._oauth_request(
            "POST", fn_name, "/shelf/add_books_to_shelves.xml", params
        )

    async def get_books_on_user_shelf(
        self, user_id: str, shelf: str, options: Mapping[str, Any] | None = None
    ) -> Any:
        """Books on a user's shelf. Requires OAuth.

        Args:
            user_id: Goodreads user id
            shelf: Shelf name, e.g. "read" or "to-read"
            options: Optional ``sort``, ``search[query]``, ``order`` ("a"/"d"),
                ``page`` and ``per_page`` (1-200)

        Returns:
            The ``reviews`` element
        """
        fn_name = "get_books_on_user_shelf()"
        self._require(fn_name, user_id=user_id, shelf=shelf)
        params = {
            "v": 2,
            "id": user_id,
            "shelf": shelf,
            "key": self._key,
            "format": XML_FORMAT,
            **(options or {}),
        }
        return await self._oauth_request("GET", fn_name, "/review/list", params, "reviews")

    async def get_owned_books(self, user_id: str, page: int | None = None) -> Any:
        fn_name = "get_owned_books()"
        self._require(fn_name, user_id=user_id)
        params = {"format": XML_FORMAT, "id": user_id, "page": page}
        return await self._oauth_request("GET", fn_name, "/owned_books/user", params)

    async def delete_owned_book(self, owned_book_id: str) -> Any:
        fn_name = "delete_owned_book()"
        self._require(fn_name, owned_book_id=owned_book_id)
        return await self._oauth_request(
            "POST", fn_name, f"/owned_books/destroy/{owned_book_id}", {"format": XML_FORMAT}
        )

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    async def join_group(self, group_id: str) -> Any:
        fn_name = "join_group()"
        self._require(fn_name, group_id=group_id)
        return await self._oauth_request(
            "POST", fn_name, "/group/join", {"id": group_id, "format": XML_FORMAT}
        )

    async def get_users_groups(self, user_id: str, sort: str | None = None) -> Any:
        """Groups a user belongs to, unwrapped to the ``groups`` element.

        Args:
            user_id: Goodreads user id
            sort: Optional "my_activity", "members", "last_activity" or "title"
        """
        fn_name = "get_users_groups()"
        self._require(fn_name, user_id=user_id)
        params = {"key": self._key, "sort": sort}
        return await self._get(fn_name, f"/group/list/{user_id}.xml", params, "groups")

    async def get_group_members(
        self, group_id: str, options: Mapping[str, Any] | None = None
    ) -> Any:
        """Members of a group.

        Args:
            group_id: Goodreads group id
            options: Optional ``sort``, ``q`` and ``page``
        """
        fn_name = "get_group_members()"
        self._require(fn_name, group_id=group_id)
        params = {"key": self._key, **(options or {})}
        return await self._get(fn_name, f"/group/members/{group_id}.xml", params, "group_users")

    async def search_groups(self, query: str, page: int | None = None) -> Any:
        fn_name = "search_groups()"
        self._require(fn_name, query=query)
        params = {"page": page, "key": self._key, "q": query}
        return await self._get(fn_name, "/group/search.xml", params)

    async def get_group_info(self, group_id: str, options: Mapping[str, Any] | None = None) -> Any:
        """Info about a group; ``options`` may carry ``sort`` and ``order`` ("a"/"d")."""
        fn_name = "get_group_info()"
        self._require(fn_name, group_id=group_id)
        params = {"key": self._key, **(options or {})}
        return await self._get(fn_name, f"/group/show/{group_id}.xml", params, "group")

    # ------------------------------------------------------------------
    # Reviews, statuses and events
    # ------------------------------------------------------------------

    async def get_recent_reviews(self) -> Any:
        return await self._get(
            "get_recent_reviews()", "/review/recent_reviews.xml", {"key": self._key}, "reviews"
        )

    async def get_review(self, review_id: str, page: int | None = None) -> Any:
        """A review and its comments; ``page`` selects the page of comments."""
        fn_name = "get_review()"
        self._require(fn_name, review_id=review_id)
        params = {"id": review_id, "page": page, "key": self._key}
        return await self._get(fn_name, "/review/show.xml", params, "review")

    async def get_users_review_for_book(self, user_id: str, book_id: str) -> Any:
        fn_name = "get_users_review_for_book()"
        self._require(fn_name, user_id=user_id, book_id=book_id)
        params = {"user_id": user_id, "book_id": book_id, "key": self._key}
        return await self._get(fn_name, "/review/show_by_user_and_book.xml", params, "review")

    async def delete_review(self, review_id: str) -> Any:
        fn_name = "delete_review()"
        self._require(fn_name, review_id=review_id)
        return await self._oauth_request(
            "DELETE", fn_name, "/review/destroy", {"id": review_id, "format": XML_FORMAT}
        )

    async def get_read_status(self, status_id: str) -> Any:
        fn_name = "get_read_status()"
        self._require(fn_name, status_id=status_id)
        params = {"key": self._key, "format": XML_FORMAT}
        return await self._get(fn_name, f"/read_statuses/{status_id}", params, "read_status")

    async def get_user_status(self, status_id: str) -> Any:
        fn_name = "get_user_status()"
        self._require(fn_name, status_id=status_id)
        params = {"key": self._key, "format": XML_FORMAT}
        return await self._get(fn_name, f"/user_status/show/{status_id}", params, "user_status")

    async def get_recent_statuses(self) -> Any:
        """Most recent user status updates, unwrapped to ``updates``."""
        return await self._get(
            "get_recent_statuses()", "/user_status/index.xml", {"key": self._key}, "updates"
        )

    async def get_events(self, options: Mapping[str, Any] | None = None) -> Any:
        """Events near a location.

        Args:
            options: Optional ``lat``, ``lng``, ``search[country_code]`` and
                ``search[postal_code]``
        """
        params = {"key": self._key, **(options or {})}
        return await self._get("get_events()", "/event/index.xml", params, "events")

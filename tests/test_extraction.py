from __future__ import annotations

from bs4 import BeautifulSoup

from config.locators import Locators
from extraction.activities import detect_activity_type, extract_activity, normalize_timestamp
from extraction.companies import detect_degree, extract_company_name, extract_employee, infer_department
from extraction.connections import extract_connection, extract_total_count
from extraction.locators import attr_fallback, query_all_fallback, query_fallback, text_fallback
from services.profile_urls import extract_company_id, extract_profile_id, normalize_profile_url
from sources.html_snapshot import SoupElement
from utils.number_parsing import parse_count, parse_degree, parse_int_shorthand


LOCATORS = Locators()


def _el(html: str) -> SoupElement:
    soup = BeautifulSoup(html, "html.parser")
    return SoupElement(soup.find())


def _root(html: str) -> SoupElement:
    return SoupElement(BeautifulSoup(html, "html.parser"))


def test_fallback_chain_takes_first_matching_locator():
    root = _el('<div><span class="b">second</span><span class="c">third</span></div>')
    assert text_fallback(root, [".a", ".b", ".c"]) == "second"
    assert query_fallback(root, [".a"]) is None
    assert len(query_all_fallback(root, [".a", "span"])) == 2
    # An invalid selector is skipped, not raised
    assert text_fallback(root, ["[[[", ".c"]) == "third"
    assert attr_fallback(root, [".a"], "href") is None


def test_text_fallback_skips_empty_hits_and_collapses_whitespace():
    root = _el('<div><p class="x">   </p><p class="x">  Jane \n  Doe </p></div>')
    assert text_fallback(root, [".x"]) == "Jane Doe"


def test_connection_card_full():
    card = _el(
        '<li class="mn-connection-card">'
        '<a class="mn-connection-card__link" href="https://www.linkedin.com/in/Alice-Smith/?mini=1">'
        '<span class="mn-connection-card__name">Alice  Smith</span></a>'
        '<span class="mn-connection-card__occupation">Staff Engineer</span>'
        '<span class="mn-connection-card__company-name">Acme</span>'
        '<div class="mn-connection-card__picture"><img src="https://media/alice.jpg"></div>'
        "</li>"
    )
    node = extract_connection(card, LOCATORS)
    assert node is not None
    assert node.id == "alice-smith"
    assert node.degree == 1
    assert node.status == "connected"
    assert node.profile.name == "Alice Smith"
    assert node.profile.headline == "Staff Engineer"
    assert node.profile.current_company == "Acme"
    assert node.profile.avatar_url == "https://media/alice.jpg"
    assert node.profile.profile_url == "https://linkedin.com/in/alice-smith"


def test_connection_card_optional_fields_left_empty():
    card = _el(
        '<li class="mn-connection-card"><a href="/in/bob/">'
        '<span class="mn-connection-card__name">Bob</span></a>'
        '<div class="mn-connection-card__picture"><img src="data:image/gif;base64,AAAA"></div></li>'
    )
    node = extract_connection(card, LOCATORS)
    assert node is not None
    assert node.profile.headline is None
    assert node.profile.experience == []
    assert node.profile.avatar_url is None


def test_connection_card_without_identity_is_rejected():
    no_link = _el('<li class="mn-connection-card"><span class="mn-connection-card__name">Ghost</span></li>')
    no_name = _el('<li class="mn-connection-card"><a href="/in/ghost/"></a></li>')
    assert extract_connection(no_link, LOCATORS) is None
    assert extract_connection(no_name, LOCATORS) is None


def test_total_count_from_header():
    root = _root('<div class="mn-connections__header"><h1>1,234 Connections</h1></div>')
    assert extract_total_count(root, LOCATORS) == 1234
    assert extract_total_count(_root("<div></div>"), LOCATORS) is None


def test_activity_post_with_engagement():
    item = _el(
        '<div class="feed-shared-update-v2" data-urn="urn:li:activity:42">'
        '<a class="update-components-actor__name" href="/in/alice/">Alice</a>'
        '<div class="feed-shared-text">Shipping day</div>'
        '<time datetime="2024-03-01T10:00:00Z">1w</time>'
        '<span class="social-details-social-counts__reactions-count">1.2K</span>'
        '<span class="social-details-social-counts__comments">12 comments</span>'
        "</div>"
    )
    event = extract_activity(item, LOCATORS)
    assert event is not None
    assert event.type == "post"
    assert event.actor_id == "alice"
    assert event.target_id == "alice"
    assert event.post_id == "urn:li:activity:42"
    assert event.content == "Shipping day"
    assert event.likes == 1200
    assert event.comments == 12
    assert event.timestamp == "2024-03-01T10:00:00+00:00"


def test_activity_comment_targets_other_profile():
    item = _el(
        '<div class="feed-shared-update-v2">'
        '<div class="comments-comment-item">x</div>'
        '<span class="update-components-actor__name"><a href="/in/bob/">Bob</a></span>'
        '<a class="update-components-target__name" href="/in/carol/">Carol</a>'
        '<span class="social-details-social-counts__reactions-count">99</span>'
        "</div>"
    )
    event = extract_activity(item, LOCATORS)
    assert event.type == "comment"
    assert event.actor_id == "bob"
    assert event.target_id == "carol"
    # Engagement counters belong to posts only
    assert event.likes == 0


def test_activity_type_precedence_and_default_actor():
    both = _el(
        '<div><div class="comment-entity"></div><button class="reactions-react-button--active"></button></div>'
    )
    assert detect_activity_type(both, LOCATORS) == "comment"
    share = _el('<div><div class="feed-shared-reshare-header"></div></div>')
    assert detect_activity_type(share, LOCATORS) == "share"

    anonymous = _el('<div class="feed-shared-update-v2"><div class="feed-shared-text">hi</div></div>')
    assert extract_activity(anonymous, LOCATORS) is None
    owned = extract_activity(anonymous, LOCATORS, default_actor_id="dana")
    assert owned.actor_id == owned.target_id == "dana"


def test_activity_id_is_stable_across_scrapes():
    html = (
        '<div class="feed-shared-update-v2" data-urn="urn:li:activity:7">'
        '<a class="update-components-actor__name" href="/in/alice/">Alice</a></div>'
    )
    assert extract_activity(_el(html), LOCATORS).id == extract_activity(_el(html), LOCATORS).id



class _StaleAttrs:
    """Wraps an element whose attribute reads fail after it left the page."""

    def __init__(self, inner):
        self.inner = inner

    def select(self, locator):
        return [_StaleAttrs(e) for e in self.inner.select(locator)]

    def text(self):
        return self.inner.text()

    def attr(self, name):
        raise RuntimeError("stale element")


def test_activity_with_unreadable_attributes_falls_back_to_owner():
    item = _el(
        '<div class="feed-shared-update-v2" data-urn="urn:li:activity:9">'
        '<a class="update-components-actor__name" href="/in/bob/">Bob</a>'
        '<div class="feed-shared-text">Hello</div></div>'
    )
    event = extract_activity(_StaleAttrs(item), LOCATORS, default_actor_id="alice")
    assert event is not None
    assert event.actor_id == "alice"
    assert event.post_id is None
    assert event.content == "Hello"

def test_normalize_timestamp_falls_back_to_now():
    assert normalize_timestamp("2024-01-02T03:04:05") == "2024-01-02T03:04:05+00:00"
    assert normalize_timestamp("yesterday").endswith("+00:00")
    assert normalize_timestamp(None).endswith("+00:00")


def test_employee_card_degree_department_and_mutuals():
    card = _el(
        '<li class="org-people-profile-card">'
        '<a class="app-aware-link" href="/in/erin/">profile</a>'
        '<div class="org-people-profile-card__profile-title">Erin</div>'
        '<div class="artdeco-entity-lockup__subtitle">Senior Software Engineer</div>'
        '<span class="dist-value">2nd</span>'
        '<span class="org-people-profile-card__profile-info-subtitle">7 mutual connections</span>'
        "</li>"
    )
    employee = extract_employee(card, LOCATORS)
    assert employee.profile_id == "erin"
    assert employee.name == "Erin"
    assert employee.connection_degree == 2
    assert employee.department == "Engineering"
    assert employee.mutual_connections == 7
    assert employee.role == "Senior Software Engineer"


def test_employee_degree_from_buttons():
    message = _el('<li><button aria-label="Message Frank">Message</button></li>')
    connect = _el('<li><button aria-label="Connect with Gina">Connect</button></li>')
    bare = _el("<li></li>")
    assert detect_degree(message, LOCATORS) == 1
    assert detect_degree(connect, LOCATORS) == 3
    assert detect_degree(bare, LOCATORS) == 3


def test_employee_without_link_is_rejected_and_company_name():
    card = _el('<li class="org-people-profile-card"><div class="org-people-profile-card__profile-title">X</div></li>')
    assert extract_employee(card, LOCATORS) is None
    root = _root('<h1 class="org-top-card-summary__title"> Acme Corp </h1>')
    assert extract_company_name(root, LOCATORS) == "Acme Corp"


def test_infer_department():
    assert infer_department("HR Business Partner") == "HR"
    assert infer_department("Account Executive, EMEA") == "Sales"
    assert infer_department(None) is None
    assert infer_department("Gardener") is None


def test_profile_url_helpers():
    assert extract_profile_id("https://www.linkedin.com/in/J%C3%BCrgen-M/") == "jürgen-m"
    assert extract_profile_id("https://example.com/about") is None
    assert extract_company_id("https://www.linkedin.com/company/acme/people/") == "acme"
    assert normalize_profile_url("/in/zoe") == "https://linkedin.com/in/zoe"
    assert normalize_profile_url("https://example.com/in/zoe") is None


def test_number_parsing():
    assert parse_int_shorthand("3M") == 3000000
    assert parse_int_shorthand("500+") == 500
    assert parse_int_shorthand("none") is None
    assert parse_count(None) == 0
    assert parse_degree("· 3rd+") == 3
    assert parse_degree("Following") is None

from coursechat.services.content_policy import ContentPolicy


def test_policy_flags_implementation_questions():
    policy = ContentPolicy()
    assert policy.is_prohibited("What database do you use?")
    assert policy.is_prohibited("Which FRAMEWORK is this built on")
    assert policy.is_prohibited("Tell me about your CI/CD pipeline")
    assert policy.is_prohibited("Do you use machine learning?")


def test_policy_matches_whole_words_only():
    policy = ContentPolicy()
    assert not policy.is_prohibited("Explain the rapid prototyping model")
    assert not policy.is_prohibited("What is a capital budget?")
    assert not policy.is_prohibited("Summarize the libraries chapter")


def test_policy_allows_course_questions():
    policy = ContentPolicy()
    assert not policy.is_prohibited("Explain binary search trees")
    assert not policy.is_prohibited("")


def test_policy_is_replaceable_and_extendable():
    policy = ContentPolicy(keywords=["exam paper"])
    assert policy.is_prohibited("Share the exam paper please")
    assert not policy.is_prohibited("Which database?")

    policy.extend(["answer key"])
    assert policy.is_prohibited("Where is the Answer Key?")


def test_empty_policy_allows_everything():
    assert not ContentPolicy(keywords=[]).is_prohibited("database server api")

from creator_rss.cli import main

main()

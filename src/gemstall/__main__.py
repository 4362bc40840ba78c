from gemstall.cli import main

raise SystemExit(main())
